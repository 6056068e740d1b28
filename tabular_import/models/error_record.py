from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

This module defines the ErrorRecord dataclass used for structured error logging
of an import run. Validation failures and submission failures each produce one
record per row; file-level failures (unreadable upload, empty file) use row=-1
as a sentinel because no specific row can be blamed.
"""

__all__ = [
    "ErrorRecord",
    "VALIDATION_ERROR",
    "SUBMISSION_ERROR",
    "PARSE_ERROR",
]

VALIDATION_ERROR = "VALIDATION_ERROR"
SUBMISSION_ERROR = "SUBMISSION_ERROR"
PARSE_ERROR = "PARSE_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded file name
        kind: Import kind (batches / courses / participants / students)
        row: Row number (1-based). Use -1 for file-level errors where row is unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable reason (joined validation errors or remote reason)
    """
    timestamp: str  # ISO8601 UTC
    file: str
    kind: str
    row: int  # 行番号。不明な場合 -1 許容
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, kind: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            kind=kind,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
