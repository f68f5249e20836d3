"""Test pagination and batching"""

from unittest.mock import Mock

import pytest

from spot_lyrics.core.exceptions import AuthError, AuthorizationDenied, TransientError
from spot_lyrics.core.report import FailureAggregator, FailureReason
from spot_lyrics.spotify.fetcher import (
    Page,
    PageCursor,
    batch_fetch,
    chunk_identifiers,
    walk_collection,
)


def make_collection(size, page_size):
    """Return (identifiers, fetch_page, offsets) for a fake paginated collection."""
    identifiers = [f"id{i:04d}" for i in range(size)]
    offsets = []

    def fetch_page(offset, limit):
        assert limit == page_size
        offsets.append(offset)
        chunk = identifiers[offset:offset + limit]
        return Page(
            identifiers=tuple(chunk),
            has_next=offset + limit < size,
            total=size,
        )

    return identifiers, fetch_page, offsets


class TestPageCursor:
    """Test the offset/limit cursor"""

    def test_advance_moves_one_page(self):
        """Test advance adds the limit while pages remain"""
        cursor = PageCursor(limit=50)

        cursor.advance(True)
        cursor.advance(True)

        assert cursor.offset == 100
        assert cursor.has_next

    def test_advance_stops(self):
        """Test the offset stays put on the last page"""
        cursor = PageCursor(limit=50, offset=100)

        cursor.advance(False)

        assert cursor.offset == 100
        assert not cursor.has_next

    @pytest.mark.parametrize("limit,offset", [(0, 0), (-1, 0), (50, -50)])
    def test_invalid_values(self, limit, offset):
        """Test non-positive limits and negative offsets are rejected"""
        with pytest.raises(ValueError):
            PageCursor(limit=limit, offset=offset)


class TestWalkCollection:
    """Test collecting identifiers across pages"""

    def test_album_of_120_tracks(self):
        """Test 120 items with page size 50 take offsets 0, 50 and 100"""
        identifiers, fetch_page, offsets = make_collection(120, 50)

        result = walk_collection(fetch_page, page_size=50)

        assert offsets == [0, 50, 100]
        assert result == identifiers

    def test_exact_multiple_of_page_size(self):
        """Test the walk ends when has_next is false on a full page"""
        identifiers, fetch_page, offsets = make_collection(100, 50)

        result = walk_collection(fetch_page, page_size=50)

        assert offsets == [0, 50]
        assert result == identifiers

    def test_empty_collection(self):
        """Test an empty collection takes one request"""
        _, fetch_page, offsets = make_collection(0, 100)

        assert walk_collection(fetch_page, page_size=100) == []
        assert offsets == [0]

    def test_no_next_page_stops_despite_total(self):
        """Test has_next wins over a larger declared total"""
        fetch_page = Mock(return_value=Page(identifiers=("a", "b"), has_next=False, total=500))

        result = walk_collection(fetch_page, page_size=50)

        assert result == ["a", "b"]
        fetch_page.assert_called_once_with(0, 50)

    def test_next_page_followed_past_total(self):
        """Test has_next keeps the walk going even past the declared total"""
        pages = [
            Page(identifiers=("a",), has_next=True, total=1),
            Page(identifiers=("b",), has_next=False, total=1),
        ]
        fetch_page = Mock(side_effect=pages)

        assert walk_collection(fetch_page, page_size=1) == ["a", "b"]

    def test_unavailable_items_dropped(self):
        """Test None and empty identifiers are skipped, order kept"""
        fetch_page = Mock(return_value=Page(
            identifiers=("a", None, "b", "", "c"), has_next=False
        ))

        assert walk_collection(fetch_page, page_size=50) == ["a", "b", "c"]

    def test_page_failure_propagates(self):
        """Test a failing page aborts the walk"""
        fetch_page = Mock(side_effect=[
            Page(identifiers=("a",), has_next=True),
            TransientError("HTTP 500"),
        ])

        with pytest.raises(TransientError):
            walk_collection(fetch_page, page_size=1)

    def test_pace_called_before_every_page(self):
        """Test the pacing hook runs once per page"""
        _, fetch_page, _ = make_collection(120, 50)
        pace = Mock()

        walk_collection(fetch_page, page_size=50, pace=pace)

        assert pace.call_count == 3

    def test_invalid_page_size(self):
        """Test a zero page size is rejected before any request"""
        fetch_page = Mock()

        with pytest.raises(ValueError):
            walk_collection(fetch_page, page_size=0)

        fetch_page.assert_not_called()


class TestChunkIdentifiers:
    """Test batch splitting"""

    def test_130_identifiers(self):
        """Test 130 identifiers split into 50, 50 and 30"""
        identifiers = [f"id{i}" for i in range(130)]

        batches = list(chunk_identifiers(identifiers, 50))

        assert [len(batch) for batch in batches] == [50, 50, 30]
        assert [i for batch in batches for i in batch] == identifiers

    def test_empty(self):
        """Test no identifiers give no batches"""
        assert list(chunk_identifiers([], 50)) == []

    @pytest.mark.parametrize("batch_size", [0, -5])
    def test_invalid_batch_size(self, batch_size):
        """Test non-positive batch sizes are rejected"""
        with pytest.raises(ValueError):
            list(chunk_identifiers(["a"], batch_size))


class TestBatchFetch:
    """Test batch fetching with partial failures"""

    def test_failed_batch_does_not_stop_siblings(self):
        """Test the middle batch failing still returns the other 80 items"""
        identifiers = [f"id{i:03d}" for i in range(130)]
        aggregator = FailureAggregator()
        calls = []

        def fetch_batch(batch):
            calls.append(len(batch))
            if len(calls) == 2:
                raise TransientError("HTTP 502")
            return [f"item-{i}" for i in batch]

        items = batch_fetch(identifiers, fetch_batch, batch_size=50, aggregator=aggregator)

        assert calls == [50, 50, 30]
        assert items == [f"item-{i}" for i in identifiers[:50] + identifiers[100:]]
        assert aggregator.succeeded == 80
        failures = aggregator.failures
        assert [f.identifier for f in failures] == identifiers[50:100]
        assert all(f.reason is FailureReason.TRANSIENT_ERROR for f in failures)
        assert failures[0].message == "HTTP 502"

    def test_unresolved_entries_recorded_as_not_found(self):
        """Test None entries are omitted and recorded NOT_FOUND"""
        aggregator = FailureAggregator()

        items = batch_fetch(
            ["a", "b", "c"],
            lambda batch: ["A", None, "C"],
            aggregator=aggregator,
        )

        assert items == ["A", "C"]
        assert [(f.identifier, f.reason) for f in aggregator.failures] == [
            ("b", FailureReason.NOT_FOUND)
        ]

    def test_short_response_padded(self):
        """Test identifiers missing from a short response count as NOT_FOUND"""
        aggregator = FailureAggregator()

        items = batch_fetch(["a", "b", "c"], lambda batch: ["A"], aggregator=aggregator)

        assert items == ["A"]
        assert [f.identifier for f in aggregator.failures] == ["b", "c"]

    def test_denied_batch_recorded_as_auth_error(self):
        """Test a batch denied after re-login is recorded AUTH_ERROR"""
        aggregator = FailureAggregator()
        fetch_batch = Mock(side_effect=[
            AuthorizationDenied("denied", status=403),
            ["C"],
        ])

        items = batch_fetch(["a", "b", "c"], fetch_batch, batch_size=2, aggregator=aggregator)

        assert items == ["C"]
        assert [(f.identifier, f.reason) for f in aggregator.failures] == [
            ("a", FailureReason.AUTH_ERROR),
            ("b", FailureReason.AUTH_ERROR),
        ]

    def test_exhausted_login_propagates(self):
        """Test AuthError from the login protocol stops the whole fetch"""
        fetch_batch = Mock(side_effect=AuthError("sp_dc provided is invalid"))

        with pytest.raises(AuthError):
            batch_fetch(["a", "b", "c"], fetch_batch, batch_size=1)

        fetch_batch.assert_called_once()

    def test_without_aggregator(self):
        """Test failures are tolerated when nothing records them"""
        fetch_batch = Mock(side_effect=[TransientError("boom"), ["b"]])

        assert batch_fetch(["a", "b"], fetch_batch, batch_size=1) == ["b"]

    def test_pace_called_per_batch(self):
        """Test the pacing hook runs once per batch"""
        pace = Mock()

        batch_fetch(list("abcde"), lambda batch: batch, batch_size=2, pace=pace)

        assert pace.call_count == 3
