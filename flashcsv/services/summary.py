from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering.

Format:
SUMMARY files={n} success={s} failed={f} imported={i} rejected={r}
warnings={w} elapsed_sec={e} throughput_rps={t}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # 指数表記を避ける
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(total_files: int, result: ProcessingResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_files=1, failed_files=0, total_imported_rows=40,
        ...     total_rejected_rows=2, total_warn_rows=0, start_time=start,
        ...     end_time=end, elapsed_seconds=2.0, throughput_rows_per_sec=20.0
        ... )
        >>> render_summary_line(1, result)
        'SUMMARY files=1 success=1 failed=0 imported=40 rejected=2 warnings=0 elapsed_sec=2 throughput_rps=20'
    """
    return (
        f"SUMMARY files={total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"imported={result.total_imported_rows} "
        f"rejected={result.total_rejected_rows} "
        f"warnings={result.total_warn_rows} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
