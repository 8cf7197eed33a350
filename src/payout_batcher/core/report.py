"""
Batch report model.

Records what happened to every input line of a run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


class LineStatus(str, Enum):
    """Outcome of one input line."""
    PREVIEWED = "previewed"           # Printed, not signed
    SIGNED = "signed"                 # Signed and written to the output file
    SUBMITTED = "submitted"           # Accepted by the network
    SUBMIT_FAILED = "submit_failed"   # Terminal submission failure
    REJECTED = "rejected"             # Decode, validation or signing failure


@dataclass
class LineResult:
    """
    Result for a single input line.

    Attributes:
        line_number: 1-based line number in the input file
        status: What happened to the line
        reason: Error text for failed lines
        tx_hash: Hash of the signed transaction, when signed
        attempts: Submission attempts (submit mode only)
    """

    line_number: int
    status: LineStatus
    reason: Optional[str] = None
    tx_hash: Optional[str] = None
    attempts: int = 0

    @property
    def is_failure(self) -> bool:
        return self.status in (LineStatus.REJECTED, LineStatus.SUBMIT_FAILED)


@dataclass
class BatchReport:
    """Ordered line results of a batch run."""

    results: List[LineResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    def add(self, result: LineResult) -> None:
        self.results.append(result)

    def finish(self) -> None:
        self.finished_at = datetime.now(timezone.utc)

    @property
    def size(self) -> int:
        return len(self.results)

    @property
    def failures(self) -> List[LineResult]:
        return [r for r in self.results if r.is_failure]

    @property
    def ok(self) -> bool:
        return not self.failures

    def counts(self) -> Dict[str, int]:
        """Number of lines per status."""
        counts = {status.value: 0 for status in LineStatus}
        for result in self.results:
            counts[result.status.value] += 1
        return counts

    def summary(self) -> str:
        """One summary line plus one line per failure."""
        counts = ", ".join(f"{count} {name}" for name, count in self.counts().items() if count)
        lines = [f"Processed {self.size} line(s): {counts or 'nothing to do'}"]
        for failure in self.failures:
            lines.append(f"  line {failure.line_number}: {failure.status.value}: {failure.reason}")
        return "\n".join(lines)
