from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.processing_result import CsvFile, FileStatus

"""Progress display with tqdm (TTY only).

One bar over the source files of a run. The postfix carries the running
import tally (files ok/failed, cards imported/rejected). Counts are kept even
when the bar is disabled in non-TTY environments, where log lines stay clean.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """File-level progress bar with a running card tally."""

    def __init__(self, total_files: int, *, description: str = "Importing files") -> None:
        self.total_files = total_files
        self.description = description
        self.current_file = 0
        self.ok_files = 0
        self.failed_files = 0
        self.imported_cards = 0
        self.rejected_cards = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        if self.enabled:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                leave=True,
                ncols=80,
                ascii=True,
            )

    def start_file(self, file_path: Path) -> None:
        self.current_file += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self, outcome: CsvFile) -> None:
        """Fold one file's outcome into the tally and advance the bar."""
        if outcome.status == FileStatus.SUCCESS:
            self.ok_files += 1
            self.imported_cards += outcome.imported_rows
        else:
            self.failed_files += 1
        # 失敗ファイルでも検証で弾いた行は数える
        self.rejected_cards += outcome.rejected_rows

        if self.pbar is not None:
            self.pbar.set_postfix(self.postfix())
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def postfix(self) -> dict[str, int]:
        return {
            "ok": self.ok_files,
            "failed": self.failed_files,
            "cards": self.imported_cards,
            "rejected": self.rejected_cards,
        }

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
