from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import ImportConfig
from ..csvio.error_report import write_error_csv
from ..csvio.parser import ParseError, parse_file, read_source
from ..db.base import StorageError
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..mapping.infer import MappingError, resolve_overrides
from ..models.error_record import FILE_LEVEL_ROW
from ..models.processing_result import CsvFile, FileStat, FileStatus, ProcessingResult
from ..models.store import StorageCollaborator
from ..validation.validator import check_mapping, index_decks_by_name, validate
from .importer import ImportExecutionError, execute
from .progress import ProgressTracker

logger = logging.getLogger(__name__)

"""Service orchestration for the CSV -> flashcard import tool.

Coordinates one batch run: scanning the source directory, pushing each file
through parse -> map -> validate -> execute, writing rejected-row reports,
aggregating metrics and returning a ProcessingResult.

Files are independent. A file that fails (unreadable, unparseable, bad
mapping, storage failure) is rolled back and the run moves on; files
processed later see the cards imported by earlier ones.
"""

__all__ = [
    "ProcessingError",
    "SOURCE_SUFFIXES",
    "scan_csv_files",
    "error_csv_path",
    "process_file",
    "process_all",
]

SOURCE_SUFFIXES = (".csv", ".tsv", ".txt")


class ProcessingError(Exception):
    """Fatal error that prevents the run from starting."""


def scan_csv_files(directory: Path) -> list[Path]:
    """Scan directory for source files (non-recursive, sorted by name).

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        files = [p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in SOURCE_SUFFIXES]
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e
    return sorted(files, key=lambda p: p.name)


def error_csv_path(config: ImportConfig, source: Path) -> Path:
    return Path(config.errors_directory) / f"{source.stem}-errors.csv"


def _failed(path: Path, start_time: datetime, error: str, **counts: object) -> CsvFile:
    return CsvFile(
        path=path,
        name=path.name,
        status=FileStatus.FAILED,
        error=error,
        start_time=start_time,
        end_time=datetime.now(UTC),
        **counts,  # type: ignore[arg-type]
    )


def process_file(
    path: Path,
    config: ImportConfig,
    store: StorageCollaborator,
    error_log: ErrorLogBuffer,
    dry_run: bool = False,
) -> CsvFile:
    """Run one CSV file through the whole pipeline.

    Args:
        path: Source file
        config: Run configuration (parse settings, mapping overrides, options)
        store: Storage collaborator; read for decks/cards, written by the executor
        error_log: Buffer receiving one record per rejected row or failed file
        dry_run: Validate and report only, never write to storage

    Returns:
        CsvFile describing the outcome. Failures are returned, not raised.
    """
    start_time = datetime.now(UTC)

    try:
        text = read_source(path)
        table = parse_file(text, config.delimiter, config.has_header_row)
    except ParseError as e:
        logger.error(f"file={path.name} parse failed: {e}")
        error_log.append(ErrorRecord.create(path.name, FILE_LEVEL_ROW, "PARSE_ERROR", str(e)))
        return _failed(path, start_time, str(e))

    logger.debug(
        f"file={path.name} delimiter={table.delimiter_name.value} "
        f"headers={list(table.headers)} rows={len(table.rows)}"
    )

    try:
        mapping = resolve_overrides(table.headers, config.mapping_overrides)
        check_mapping(mapping, table.column_count)
    except MappingError as e:
        logger.error(f"file={path.name} mapping failed: {e}")
        error_log.append(ErrorRecord.create(path.name, FILE_LEVEL_ROW, "MAPPING_ERROR", str(e)))
        return _failed(
            path,
            start_time,
            str(e),
            delimiter_name=table.delimiter_name.value,
            parsed_rows=len(table.rows),
        )

    try:
        decks = index_decks_by_name(store.list_decks())
        result = validate(table, mapping, config.options, store.list_cards(), decks)
    except StorageError as e:
        logger.error(f"file={path.name} storage read failed: {e}")
        error_log.append(ErrorRecord.create(path.name, FILE_LEVEL_ROW, "STORAGE_ERROR", str(e)))
        return _failed(
            path,
            start_time,
            str(e),
            delimiter_name=table.delimiter_name.value,
            parsed_rows=len(table.rows),
        )

    error_csv: Path | None = None
    if result.error_rows:
        for er in result.error_rows:
            error_log.append(ErrorRecord.create(path.name, er.row_number, "ROW_REJECTED", er.reason))
        try:
            error_csv = write_error_csv(error_csv_path(config, path), result.error_rows)
        except OSError as e:
            # レポートが書けなくても取込は続行
            logger.error(f"file={path.name} cannot write rejected rows: {e}")
            error_log.append(ErrorRecord.create(path.name, FILE_LEVEL_ROW, "REPORT_WRITE_ERROR", str(e)))
            logger.warning(f"file={path.name} rejected={len(result.error_rows)} rows")
        else:
            logger.warning(
                f"file={path.name} rejected={len(result.error_rows)} rows (see {error_csv})"
            )
    if result.warn_rows:
        logger.warning(
            f"file={path.name} {result.warn_rows} rows have no deck; "
            "they go to the default or fallback deck"
        )

    imported = 0
    if dry_run:
        logger.info(f"file={path.name} dry-run: {len(result.valid_rows)} rows would be imported")
    else:
        try:
            imported = execute(result, store)
        except ImportExecutionError as e:
            logger.error(f"file={path.name} import failed: {e}")
            error_log.append(ErrorRecord.create(path.name, FILE_LEVEL_ROW, "STORAGE_ERROR", str(e)))
            return _failed(
                path,
                start_time,
                str(e),
                delimiter_name=table.delimiter_name.value,
                parsed_rows=len(table.rows),
                rejected_rows=len(result.error_rows),
                warn_rows=result.warn_rows,
                error_csv=error_csv,
            )

    logger.info(
        f"file={path.name} delimiter={table.delimiter_name.value} parsed={len(table.rows)} "
        f"imported={imported} rejected={len(result.error_rows)} warnings={result.warn_rows}"
    )
    return CsvFile(
        path=path,
        name=path.name,
        status=FileStatus.SUCCESS,
        delimiter_name=table.delimiter_name.value,
        parsed_rows=len(table.rows),
        imported_rows=imported,
        rejected_rows=len(result.error_rows),
        warn_rows=result.warn_rows,
        error_csv=error_csv,
        start_time=start_time,
        end_time=datetime.now(UTC),
    )


def process_all(
    config: ImportConfig,
    store: StorageCollaborator,
    dry_run: bool = False,
) -> ProcessingResult:
    """Process every source file in the configured directory.

    Args:
        config: Import configuration
        store: Storage collaborator shared by all files of the run
        dry_run: Validate and report only

    Returns:
        ProcessingResult with aggregated metrics and file stats

    Raises:
        ProcessingError: Source directory missing or unreadable
    """
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer(Path(config.logs_directory))

    file_paths = scan_csv_files(Path(config.source_directory))

    file_stats: list[FileStat] = []
    success_count = 0
    failed_count = 0
    total_imported = 0
    total_rejected = 0
    total_warn = 0

    if not file_paths:
        logger.info(f"no source files in {config.source_directory}")

    with ProgressTracker(len(file_paths), description="Importing files") as progress:
        for file_path in file_paths:
            progress.start_file(file_path)

            outcome = process_file(file_path, config, store, error_log, dry_run=dry_run)

            if outcome.status == FileStatus.SUCCESS:
                success_count += 1
                total_imported += outcome.imported_rows
            else:
                failed_count += 1
            total_rejected += outcome.rejected_rows
            total_warn += outcome.warn_rows

            progress.finish_file(outcome)

            elapsed = 0.0
            if outcome.start_time is not None and outcome.end_time is not None:
                elapsed = (outcome.end_time - outcome.start_time).total_seconds()
            file_stats.append(
                FileStat(
                    file_name=outcome.name,
                    status=outcome.status.value,
                    imported_rows=outcome.imported_rows,
                    rejected_rows=outcome.rejected_rows,
                    elapsed_seconds=elapsed,
                )
            )

    # Flush error log once
    try:
        log_path = error_log.flush()
    except OSError as e:
        # ログ書き込み失敗で取込結果は覆さない
        logger.warning(f"failed to write error log: {e}")
    else:
        if log_path is not None:
            logger.info(f"error log written: {log_path}")

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_imported / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        total_imported_rows=total_imported,
        total_rejected_rows=total_rejected,
        total_warn_rows=total_warn,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        file_stats=file_stats,
    )
