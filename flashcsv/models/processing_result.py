from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

"""Processing result models for a batch import run.

CsvFile tracks one source file through the run; FileStat and
ProcessingResult aggregate what the SUMMARY line reports.
"""

__all__ = [
    "FileStatus",
    "CsvFile",
    "FileStat",
    "ProcessingResult",
]


class FileStatus(Enum):
    """Status of one source file.

    State transitions: pending → processing → (success | failed)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class CsvFile:
    """Outcome of running one CSV file through the pipeline."""
    path: Path
    name: str
    status: FileStatus = FileStatus.PENDING
    delimiter_name: str | None = None  # sniffed or pinned delimiter
    parsed_rows: int = 0
    imported_rows: int = 0
    rejected_rows: int = 0
    warn_rows: int = 0
    error_csv: Path | None = None  # written only when rows were rejected
    error: str | None = None  # file-level failure reason
    start_time: datetime | None = None
    end_time: datetime | None = None


@dataclass(frozen=True)
class FileStat:
    file_name: str
    status: str  # success/failed
    imported_rows: int
    rejected_rows: int
    elapsed_seconds: float


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results for the SUMMARY output line."""
    success_files: int
    failed_files: int
    total_imported_rows: int
    total_rejected_rows: int
    total_warn_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # imported / elapsed
    file_stats: list[FileStat] = field(default_factory=list)
