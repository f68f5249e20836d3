"""Test LRC formatting and the lyrics job"""

from unittest.mock import Mock

import pytest

from spot_lyrics.core.config import LyricsConfig
from spot_lyrics.core.exceptions import AuthError
from spot_lyrics.core.report import FailureAggregator, FailureReason
from spot_lyrics.download.lyrics import (
    LyricsStats,
    download_collection,
    download_lyrics,
    format_lrc,
    lyrics_file_path,
    resolve_target_dir,
)
from spot_lyrics.spotify.models import (
    Collection,
    CollectionKind,
    CollectionRef,
    Failed,
    Found,
    Lyrics,
    LyricsLine,
    NotFound,
    Track,
)

FILE_NAME = "{name} - {artist}"


@pytest.fixture
def track(sample_track_data):
    return Track.from_spotify_api(sample_track_data)


@pytest.fixture
def synced_lyrics():
    return Lyrics(
        track_id="track0000000000000001",
        sync_type="LINE_SYNCED",
        lines=(
            LyricsLine("First line", 15230),
            LyricsLine("Second line", 18500),
            LyricsLine("No timestamp"),
        ),
    )


@pytest.fixture
def client():
    """Mock SpotifyClient with a real FailureAggregator"""
    client = Mock()
    client.failures = FailureAggregator()
    return client


@pytest.fixture
def make_track(make_track_data):
    def factory(track_id):
        return Track.from_spotify_api(make_track_data(track_id, name=f"Song {track_id}"))
    return factory


class TestFormatLrc:
    """Test LRC rendering"""

    def test_synced(self, synced_lyrics, track):
        """Test header tags and timestamps"""
        content = format_lrc(synced_lyrics, track)

        assert content == (
            "[ti:Test Song]\n"
            "[al:Test Album]\n"
            "[ar:Test Artist]\n"
            "[length:03:30.00]\n"
            "[00:15.23]First line\n"
            "[00:18.50]Second line\n"
            "No timestamp\n"
        )

    def test_synced_disabled(self, synced_lyrics, track):
        """Test synced=False drops every timestamp"""
        content = format_lrc(synced_lyrics, track, synced=False)

        assert "[00:15.23]" not in content
        assert "First line\nSecond line\nNo timestamp\n" in content

    def test_unsynced_lyrics(self, track):
        """Test UNSYNCED lyrics are written without timestamps"""
        lyrics = Lyrics("abc", "UNSYNCED", (LyricsLine("Plain", 0),))

        assert format_lrc(lyrics, track).endswith("]\nPlain\n")

    def test_no_length_without_duration(self):
        """Test the length tag is omitted for unknown durations"""
        track = Track.from_spotify_api({"id": "abc", "name": "Song"})
        lyrics = Lyrics("abc", "LINE_SYNCED", (LyricsLine("x", 0),))

        assert "[length:" not in format_lrc(lyrics, track)


class TestLyricsStats:
    """Test LyricsStats"""

    def test_found_rate(self):
        """Test the rate ignores skipped tracks"""
        stats = LyricsStats(total=10, downloaded=4, skipped=2)
        assert stats.found_rate == 50.0

    def test_found_rate_nothing_attempted(self):
        """Test zero attempts give zero"""
        assert LyricsStats(total=2, skipped=2).found_rate == 0.0

    def test_merge(self):
        """Test merging adds every field"""
        merged = LyricsStats(total=1, downloaded=1, synced=1).merge(
            LyricsStats(total=2, not_found=1, failed=1)
        )
        assert merged == LyricsStats(total=3, downloaded=1, synced=1, not_found=1, failed=1)


class TestDownloadLyrics:
    """Test the per-track lyrics job"""

    def test_mixed_outcomes(self, client, make_track, synced_lyrics, temp_dir):
        """Test one track failing never stops its siblings"""
        tracks = [make_track("t1"), make_track("t2"), make_track("t3")]
        client.get_items_batch.return_value = tracks
        results = {
            "t1": Found(synced_lyrics),
            "t2": NotFound("t2"),
            "t3": Failed("t3", FailureReason.TRANSIENT_ERROR, "HTTP 500"),
        }
        client.get_item_detail.side_effect = lambda track_id: results[track_id]
        options = LyricsConfig(file_name=FILE_NAME)

        stats = download_lyrics(client, ["t1", "t2", "t3", "t4"], temp_dir, options)

        assert stats == LyricsStats(total=4, downloaded=1, synced=1, not_found=1, failed=2)
        written = temp_dir / "Song t1 - Test Artist.lrc"
        assert written.read_text(encoding="utf-8").startswith("[ti:Song t1]\n")
        assert not (temp_dir / "Song t2 - Test Artist.lrc").exists()
        assert client.failures.unresolved() == [
            ("Test Artist - Song t2", "Not found"),
            ("Test Artist - Song t3", "Transient error: HTTP 500"),
        ]

    def test_skips_existing(self, client, make_track, temp_dir):
        """Test existing files are left alone without a lyrics request"""
        track = make_track("t1")
        client.get_items_batch.return_value = [track]
        options = LyricsConfig(file_name=FILE_NAME)
        lyrics_file_path(track, temp_dir, FILE_NAME).write_text("old", encoding="utf-8")

        stats = download_lyrics(client, ["t1"], temp_dir, options)

        assert stats.skipped == 1
        client.get_item_detail.assert_not_called()

    def test_force_overwrites(self, client, make_track, synced_lyrics, temp_dir):
        """Test force rewrites existing files"""
        track = make_track("t1")
        client.get_items_batch.return_value = [track]
        client.get_item_detail.return_value = Found(synced_lyrics)
        path = lyrics_file_path(track, temp_dir, FILE_NAME)
        path.write_text("old", encoding="utf-8")

        stats = download_lyrics(client, ["t1"], temp_dir, LyricsConfig(file_name=FILE_NAME, force=True))

        assert stats.downloaded == 1
        assert path.read_text(encoding="utf-8") != "old"

    def test_plain_when_unsynced_option(self, client, make_track, synced_lyrics, temp_dir):
        """Test synced=False counts written files as plain"""
        client.get_items_batch.return_value = [make_track("t1")]
        client.get_item_detail.return_value = Found(synced_lyrics)

        stats = download_lyrics(client, ["t1"], temp_dir, LyricsConfig(file_name=FILE_NAME, synced=False))

        assert stats.plain == 1
        assert stats.synced == 0

    def test_write_failure_recorded(self, client, make_track, synced_lyrics, temp_dir):
        """Test an unwritable file is recorded and the job continues"""
        broken, fine = make_track("t1"), make_track("t2")
        client.get_items_batch.return_value = [broken, fine]
        client.get_item_detail.return_value = Found(synced_lyrics)
        lyrics_file_path(broken, temp_dir, FILE_NAME).mkdir()

        stats = download_lyrics(client, ["t1", "t2"], temp_dir, LyricsConfig(file_name=FILE_NAME, force=True))

        assert stats.failed == 1
        assert stats.downloaded == 1
        record = client.failures.failures[0]
        assert record.identifier == "t1"
        assert record.reason is FailureReason.TRANSIENT_ERROR
        assert record.label == "Test Artist - Song t1"

    def test_auth_error_propagates(self, client, make_track, temp_dir):
        """Test an exhausted login stops the job"""
        client.get_items_batch.return_value = [make_track("t1")]
        client.get_item_detail.side_effect = AuthError("sp_dc provided is invalid")

        with pytest.raises(AuthError):
            download_lyrics(client, ["t1"], temp_dir, LyricsConfig())

    def test_one_outcome_per_track(self, client, make_track, synced_lyrics, temp_dir):
        """Test every track id is counted exactly once in client.failures"""
        tracks = {track_id: make_track(track_id) for track_id in ("t1", "t2", "t3")}

        def get_items_batch(track_ids, aggregator):
            resolved = []
            for track_id in track_ids:
                if track_id in tracks:
                    aggregator.record_success(track_id)
                    resolved.append(tracks[track_id])
                else:
                    aggregator.record_failure(track_id, FailureReason.NOT_FOUND)
            return resolved

        client.get_items_batch.side_effect = get_items_batch
        client.get_item_detail.side_effect = lambda track_id: (
            Found(synced_lyrics) if track_id == "t1" else NotFound(track_id)
        )
        lyrics_file_path(tracks["t3"], temp_dir, FILE_NAME).write_text("old", encoding="utf-8")
        track_ids = ["t1", "t2", "t3", "t4"]

        download_lyrics(client, track_ids, temp_dir, LyricsConfig(file_name=FILE_NAME))

        assert client.failures.total == len(track_ids)
        assert client.failures.succeeded == 2
        assert [(f.identifier, f.reason) for f in client.failures.failures] == [
            ("t4", FailureReason.NOT_FOUND),
            ("t2", FailureReason.NOT_FOUND),
        ]
        assert client.failures.summary() == "2 resolved, 2 unresolved (2 not found)"

    def test_no_tracks(self, client, temp_dir):
        """Test an empty list makes no requests"""
        assert download_lyrics(client, [], temp_dir, LyricsConfig()) == LyricsStats()
        client.get_items_batch.assert_not_called()


class TestCollections:
    """Test album/playlist jobs"""

    @pytest.fixture
    def album(self):
        return Collection(
            ref=CollectionRef(CollectionKind.ALBUM, "alb"),
            name="Album",
            artists=("Band",),
            total_tracks=2,
        )

    def test_target_dir_without_folder(self, album, temp_dir):
        """Test create_folder=False writes into the output directory"""
        assert resolve_target_dir(temp_dir, album, LyricsConfig(create_folder=False)) == temp_dir

    def test_target_dir_named_after_collection(self, album, temp_dir):
        """Test the album folder follows album_folder_name"""
        assert resolve_target_dir(temp_dir, album, LyricsConfig()) == temp_dir / "Album - Band"

    def test_existing_folder_skipped(self, album, temp_dir):
        """Test an existing folder is skipped unless forced"""
        (temp_dir / "Album - Band").mkdir()

        assert resolve_target_dir(temp_dir, album, LyricsConfig()) is None
        assert resolve_target_dir(temp_dir, album, LyricsConfig(force=True)) == temp_dir / "Album - Band"

    def test_download_collection(self, client, album, make_track, temp_dir):
        """Test the collection is walked and its tracks processed"""
        client.get_collection.return_value = album
        client.get_item_collection_ids.return_value = ["t1", "t2"]
        client.get_items_batch.return_value = [make_track("t1"), make_track("t2")]
        client.get_item_detail.side_effect = lambda track_id: NotFound(track_id)

        stats = download_collection(client, album.ref, temp_dir, LyricsConfig())

        assert stats.total == 2
        assert stats.not_found == 2
        assert (temp_dir / "Album - Band").is_dir()
        client.get_item_collection_ids.assert_called_once_with(album.ref)

    def test_skipped_collection_not_walked(self, client, album, temp_dir):
        """Test a skipped folder means no track requests"""
        client.get_collection.return_value = album
        (temp_dir / "Album - Band").mkdir()

        assert download_collection(client, album.ref, temp_dir, LyricsConfig()) == LyricsStats()
        client.get_item_collection_ids.assert_not_called()
