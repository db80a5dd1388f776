from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable
from contextlib import ExitStack
from pathlib import Path
from typing import Any

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, default_config, load_config
from ..csvio.reader import read_csv_file
from ..db.connection import db_cursor, load_env_file
from ..errors import CommitFailure, CsvParseError, InvalidFormatError
from ..logging.error_log import RejectionLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.commit_result import CommitStatus
from ..models.config_models import ImportConfig
from ..models.import_plan import ImportPlan
from ..models.reference import ReferenceData
from ..services.pipeline import parse_and_validate
from ..services.progress import ProgressTracker
from ..services.reference import ReferenceLoadError, load_reference_from_db, load_reference_snapshot
from ..services.session import ImportSession
from ..services.summary import render_preview_table, render_summary_line
from ..targets import TARGETS

"""CLI entrypoint: the review surface of the import pipeline.

    python -m dashboard_import.cli preview shops shops.csv [more.csv ...]
    python -m dashboard_import.cli import deposits deposits.csv [--yes]

preview validates and prints every row with its disposition; import does the
same for one file, asks for confirmation and commits the ready rows as one
batch. DISABLE_DB_CONNECT=1 runs without PostgreSQL (reference data must then
come from --reference, and commits are not written).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_COMMIT_FAILED = 2
EXIT_NOTHING_TO_IMPORT = 3


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="dashboard-import", description="CSV bulk importer for the operations dashboard")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    p.add_argument("--reference", type=Path, help="YAML reference snapshot (instead of reading PostgreSQL)")
    sub = p.add_subparsers(dest="command", required=True)

    preview = sub.add_parser("preview", help="Validate CSV files and print the import plan")
    preview.add_argument("target", choices=sorted(TARGETS))
    preview.add_argument("files", nargs="+", type=Path)

    imp = sub.add_parser("import", help="Validate one CSV file and commit its ready rows")
    imp.add_argument("target", choices=sorted(TARGETS))
    imp.add_argument("file", type=Path)
    imp.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    imp.add_argument("--retries", type=int, default=0, help="Retry a failed commit this many times")
    return p.parse_args(argv)


def _load_config(path: Path, logger: Any) -> ImportConfig:
    if not path.exists() and path == DEFAULT_CONFIG_PATH:
        logger.debug("no %s, using defaults", path)
        return default_config()
    return load_config(path)


def _validate_file(
    path: Path,
    target: str,
    reference: ReferenceData,
    cfg: ImportConfig,
    rejections: RejectionLogBuffer,
    logger: Any,
) -> ImportPlan | None:
    """Parse + validate one file and print its plan. None on a fatal file error."""
    try:
        content = read_csv_file(path)
        plan = parse_and_validate(content, target, reference, timezone=cfg.timezone, file_name=path.name)
    except OSError as e:
        logger.error(f"{path.name}: cannot read file: {e}")
        rejections.add_file_error(path.name, target, "FILE_READ_ERROR", str(e))
        return None
    except InvalidFormatError as e:
        logger.error(f"Invalid CSV format: {e}")
        rejections.add_file_error(path.name, target, "INVALID_FORMAT", str(e))
        return None
    except CsvParseError as e:
        logger.error(f"CSV parsing error in {path.name}: {e}")
        rejections.add_file_error(path.name, target, "PARSE_ERROR", str(e))
        return None

    print(render_preview_table(plan))
    rejections.add_plan(plan)
    return plan


def _confirm_prompt(count: int, table: str) -> bool:
    try:
        answer = input(f"Confirm import of {count} rows into {table}? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _run_preview(args: argparse.Namespace, cfg: ImportConfig, reference: ReferenceData, rejections: RejectionLogBuffer, logger: Any) -> int:
    failed = 0
    with ProgressTracker(len(args.files)) as progress:
        for path in args.files:
            progress.start_file(path)
            plan = _validate_file(path, args.target, reference, cfg, rejections, logger)
            if plan is None:
                failed += 1
                progress.finish_file()
                continue
            log_summary(render_summary_line(plan))
            progress.finish_file(ready=plan.ready_count, rejected=len(plan.rejected_rows))
    return EXIT_FATAL if failed else EXIT_SUCCESS


def _run_import(
    args: argparse.Namespace,
    cfg: ImportConfig,
    reference: ReferenceData,
    reload_reference: Callable[[], ReferenceData],
    cursor: Any,
    rejections: RejectionLogBuffer,
    logger: Any,
) -> int:
    plan = _validate_file(args.file, args.target, reference, cfg, rejections, logger)
    if plan is None:
        return EXIT_FATAL

    target_cfg = cfg.target(args.target)
    session = ImportSession(plan, target_cfg, timezone=cfg.timezone, page_size=cfg.page_size)

    if not session.can_confirm:
        logger.warning(f"No {args.target} to import: there are no valid new rows in {args.file.name}.")
        log_summary(render_summary_line(plan))
        session.discard()
        return EXIT_NOTHING_TO_IMPORT

    if not args.yes and not _confirm_prompt(session.ready_count, target_cfg.table):
        logger.info("import cancelled, nothing written")
        log_summary(render_summary_line(plan))
        session.discard()
        return EXIT_SUCCESS

    attempts = max(args.retries, 0) + 1
    for attempt in range(1, attempts + 1):
        try:
            fresh = reload_reference() if cfg.revalidate_on_commit else None
            result = session.confirm(cursor, reference=fresh)
        except ReferenceLoadError as e:
            logger.error(f"Import error: {e}")
            return EXIT_FATAL
        except CommitFailure as e:
            logger.error(f"Import error (attempt {attempt}/{attempts}): {e}. No rows were written.")
            continue

        log_summary(render_summary_line(session.last_plan, result))
        if result.status is CommitStatus.NOTHING_TO_IMPORT:
            logger.warning(f"No {args.target} to import: {result.message}")
            return EXIT_NOTHING_TO_IMPORT
        logger.info(f"Import complete: {result.message}")
        return EXIT_SUCCESS

    log_summary(render_summary_line(session.last_plan))
    return EXIT_COMMIT_FAILED


def main(argv: list[str] | None = None) -> int:
    # None のときのみシステム引数を読む (テストで main([]) 等を渡せるように)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    # .env を最優先で読み込む (DB 接続パラメータ優先順位保証)
    load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_config(args.config, logger)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    disable_db = os.getenv("DISABLE_DB_CONNECT") == "1"
    needs_db = args.command == "import" or args.reference is None
    if disable_db and args.reference is None:
        logger.error("reference data unavailable: DISABLE_DB_CONNECT=1 requires --reference")
        return EXIT_FATAL

    rejections = RejectionLogBuffer(Path(cfg.rejection_log_dir))
    with ExitStack() as stack:
        cursor = None
        if needs_db and not disable_db:
            try:
                cursor = stack.enter_context(db_cursor(cfg.database))
            except Exception as e:
                logger.error(f"database connection failed: {e}")
                return EXIT_FATAL
        else:
            logger.debug("running without database connection")

        def reload_reference() -> ReferenceData:
            if args.reference is not None:
                return load_reference_snapshot(args.reference)
            return load_reference_from_db(cursor, cfg.reference_tables)

        try:
            reference = reload_reference()
        except ReferenceLoadError as e:
            logger.error(f"reference: {e}")
            return EXIT_FATAL

        if args.command == "preview":
            code = _run_preview(args, cfg, reference, rejections, logger)
        else:
            code = _run_import(args, cfg, reference, reload_reference, cursor, rejections, logger)

    log_path = rejections.flush()
    if log_path is not None:
        logger.info(f"rejections written to {log_path}")
    return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
