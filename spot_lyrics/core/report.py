"""
Per-item outcome tracking for spot-lyrics jobs.

A job touches hundreds of identifiers; some resolve, some are missing on
Spotify's side, some fail because of the network. FailureAggregator keeps
all of those outcomes in one place so the job can keep going and report
everything at the end instead of stopping at the first problem.

Every failure is also routed through log_unresolved_item(), which makes
it land in the run's unresolved_<ts>.log file.

Usage:
    failures = FailureAggregator()

    failures.record_success("4cOdK2wGLETKBW3PvgPWqT")
    failures.record_failure("5W3cjX2J3tjhG8zb6u0qHn", FailureReason.NOT_FOUND)

    for name, reason in failures.unresolved():
        print(f"{name}: {reason}")
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from spot_lyrics.core.logger import get_logger, log_unresolved_item

if TYPE_CHECKING:
    from spot_lyrics.spotify.models import LookupResult


logger = get_logger(__name__)


class FailureReason(Enum):
    """
    Why an identifier could not be resolved.

    Values:
        NOT_FOUND: The provider has no data for the identifier.
        TRANSIENT_ERROR: A network, status or parse failure on its request.
        AUTH_ERROR: The request was still denied after one re-login.
    """
    NOT_FOUND = "not_found"
    TRANSIENT_ERROR = "transient_error"
    AUTH_ERROR = "auth_error"

    @property
    def description(self) -> str:
        """Human-readable form used in summaries and the unresolved log."""
        return _REASON_DESCRIPTIONS[self]


_REASON_DESCRIPTIONS = {
    FailureReason.NOT_FOUND: "Not found",
    FailureReason.TRANSIENT_ERROR: "Transient error",
    FailureReason.AUTH_ERROR: "Authorization denied",
}


@dataclass(frozen=True)
class FailureRecord:
    """
    One unresolved identifier.

    Attributes:
        identifier: Spotify identifier of the item.
        reason: Category of the failure.
        message: Optional detail (status code, exception text).
        label: Optional display name such as "Artist - Title".
    """
    identifier: str
    reason: FailureReason
    message: str = ""
    label: str | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.identifier

    @property
    def human_reason(self) -> str:
        if self.message:
            return f"{self.reason.description}: {self.message}"
        return self.reason.description


class FailureAggregator:
    """
    Collects per-item outcomes of a job without ever short-circuiting it.

    Recording a failure never raises; the aggregator is the sink that lets
    the fetcher and the lyrics job treat one item's failure as data instead
    of control flow.

    Attributes:
        failures: Ordered list of FailureRecord, in recording order.
        succeeded: Number of identifiers recorded as successes.
    """

    def __init__(self) -> None:
        self._failures: list[FailureRecord] = []
        self._succeeded = 0

    @property
    def failures(self) -> list[FailureRecord]:
        return list(self._failures)

    @property
    def succeeded(self) -> int:
        return self._succeeded

    @property
    def total(self) -> int:
        """Number of outcomes recorded (successes and failures)."""
        return self._succeeded + len(self._failures)

    def record_success(self, identifier: str) -> None:
        self._succeeded += 1
        logger.debug(f"Resolved: {identifier}")

    def record_failure(
        self,
        identifier: str,
        reason: FailureReason,
        message: str = "",
        label: str | None = None
    ) -> FailureRecord:
        """
        Record one unresolved identifier.

        Args:
            identifier: Spotify identifier of the item.
            reason: Failure category.
            message: Optional detail appended to the human reason.
            label: Optional display name for reports.

        Returns:
            The FailureRecord that was stored.
        """
        record = FailureRecord(
            identifier=identifier,
            reason=reason,
            message=message,
            label=label,
        )
        self._failures.append(record)
        level = logging.INFO if reason is FailureReason.NOT_FOUND else logging.WARNING
        log_unresolved_item(logger, identifier, record.human_reason, label=label, level=level)
        return record

    def add_records(self, records: list[FailureRecord]) -> None:
        """
        Take over failures recorded by another aggregator.

        The records were logged when first recorded, so they are not
        written to the unresolved report again.
        """
        self._failures.extend(records)

    def record(self, identifier: str, result: "LookupResult", label: str | None = None) -> None:
        """
        Record the outcome carried by a tagged lookup result.

        Found counts as a success, NotFound as NOT_FOUND and Failed keeps
        its own reason and message.
        """
        # Imported here: models depends on this module for FailureReason
        from spot_lyrics.spotify.models import Failed, Found, NotFound

        if isinstance(result, Found):
            self.record_success(identifier)
        elif isinstance(result, NotFound):
            self.record_failure(identifier, FailureReason.NOT_FOUND, label=label)
        elif isinstance(result, Failed):
            self.record_failure(identifier, result.reason, result.message, label=label)
        else:
            raise TypeError(f"Unsupported lookup result: {result!r}")

    def unresolved(self) -> list[tuple[str, str]]:
        """
        List unresolved items as (identifier or label, human reason) pairs.

        Order matches the order in which failures were recorded.
        """
        return [(record.display_name, record.human_reason) for record in self._failures]

    def summary(self) -> str:
        """One-line summary such as '47 resolved, 3 unresolved (2 not found, 1 transient error)'."""
        counts: dict[FailureReason, int] = {}
        for record in self._failures:
            counts[record.reason] = counts.get(record.reason, 0) + 1

        text = f"{self._succeeded} resolved, {len(self._failures)} unresolved"
        if counts:
            parts = [
                f"{count} {reason.description.lower()}"
                for reason, count in counts.items()
            ]
            text += f" ({', '.join(parts)})"
        return text
