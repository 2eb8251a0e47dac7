from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from flashcsv.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from flashcsv.csvio.parser import ParseError, parse_file, read_source
from flashcsv.db.base import StorageError
from flashcsv.db.json_store import JsonFileStore
from flashcsv.db.pg_store import connect_store
from flashcsv.logging.init import log_summary, set_debug, setup_logging
from flashcsv.mapping.infer import MappingError, resolve_overrides
from flashcsv.models.store import StorageCollaborator
from flashcsv.services.orchestrator import ProcessingError, process_all, scan_csv_files
from flashcsv.services.prompts import FORMAT_STYLES, build_format_prompt
from flashcsv.services.summary import render_summary_line
from flashcsv.validation.validator import index_decks_by_name, validate

"""CLI entrypoint.

Flow:
- Load .env (overriding), then the YAML config
- Open the configured store (JSON file or PostgreSQL)
- Import every CSV in the source directory, one file at a time
- Print the SUMMARY line and map the outcome to an exit code
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

INSPECT_PREVIEW_ROWS = 5


@contextmanager
def _open_store(cfg: ImportConfig) -> Iterator[StorageCollaborator]:
    """Yield the storage collaborator selected by ``storage.backend``.

    Raises:
        StorageError: The store cannot be opened (bad JSON file, no database)
    """
    if cfg.storage.backend == "postgres":
        with connect_store(cfg.storage) as store:
            yield store
    else:
        yield JsonFileStore(Path(cfg.storage.path))


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True により .env の値で既存環境変数を上書き (DB 接続情報 / FLASHCSV_STORE を最優先化)。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="flashcsv", description="CSV -> flashcard bulk importer")
    p.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the YAML config (default: {DEFAULT_CONFIG_PATH})",
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--dry-run", action="store_true", help="Validate and report without writing cards")
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print delimiter, headers, mapping and a preview per file then exit",
    )
    p.add_argument(
        "--print-format",
        choices=FORMAT_STYLES,
        help="Print CSV authoring instructions then exit",
    )
    return p.parse_args(argv)


def _preview_frame(result) -> pd.DataFrame:
    rows = [
        {
            "row": r.row_number,
            "front": r.front,
            "back": r.back,
            "deck": r.deck_label,
            "tags": ", ".join(r.tags),
            "notes": r.notes,
        }
        for r in result.preview[:INSPECT_PREVIEW_ROWS]
    ]
    return pd.DataFrame(rows, columns=["row", "front", "back", "deck", "tags", "notes"])


def _inspect_data(cfg: ImportConfig, store: StorageCollaborator) -> int:
    try:
        files = scan_csv_files(Path(cfg.source_directory))
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not files:
        print("inspect: no source files")
        return EXIT_SUCCESS_ALL

    decks = index_decks_by_name(store.list_decks())
    cards = store.list_cards()
    for f in files:
        print(f"FILE: {f.name}")
        try:
            table = parse_file(read_source(f), cfg.delimiter, cfg.has_header_row)
        except ParseError as e:
            print(f"  parse_error: {e}")
            continue
        print(f"  delimiter={table.delimiter_name.value} headers={list(table.headers)} rows={len(table.rows)}")
        try:
            mapping = resolve_overrides(table.headers, cfg.mapping_overrides)
        except MappingError as e:
            print(f"  mapping_error: {e}")
            continue
        print(f"  mapping={mapping.as_dict()}")
        result = validate(table, mapping, cfg.options, cards, decks)
        print(
            f"  valid={len(result.valid_rows)} rejected={len(result.error_rows)} "
            f"warnings={result.warn_rows}"
        )
        for er in result.error_rows[:INSPECT_PREVIEW_ROWS]:
            print(f"    row {er.row_number}: {er.reason}")
        if result.valid_rows:
            print(_preview_frame(result).to_string(index=False))
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # Initialize logging system with labeled prefixes
    logger = setup_logging()

    # NOTE: 空リスト [] が与えられた場合 (テストで cli_main([]) 呼び出し) に
    #       sys.argv[1:] が混入しないよう None のときのみシステム引数を読む。
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug()
        logger.debug("debug mode enabled")

    if args.print_format:
        print(build_format_prompt(args.print_format))
        return EXIT_SUCCESS_ALL

    # .env を最優先で読み込む (接続パラメータ優先順位保証)
    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    logger.info(f"Processing files from: {directory}")

    try:
        with _open_store(cfg) as store:
            logger.debug(f"storage backend={cfg.storage.backend}")
            if args.inspect_data:
                return _inspect_data(cfg, store)
            try:
                result = process_all(cfg, store, dry_run=args.dry_run)
            except ProcessingError as e:
                logger.error(f"processing: {e}")
                return EXIT_FATAL
    except StorageError as e:
        logger.error(f"storage: {e}")
        return EXIT_FATAL

    if args.dry_run:
        logger.info("dry-run: no cards were written")

    for stat in result.file_stats:
        logger.debug(
            f"file={stat.file_name} status={stat.status} imported={stat.imported_rows} "
            f"rejected={stat.rejected_rows} elapsed_sec={stat.elapsed_seconds:.3f}"
        )

    total_files = result.success_files + result.failed_files

    summary_line = render_summary_line(total_files, result)
    # log_summary が "SUMMARY " を付けるため取り除く
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_files > 0 or result.total_rejected_rows > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
