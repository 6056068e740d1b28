from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from tabular_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from tabular_import.layouts.base import ImportLayout
from tabular_import.layouts.registry import KINDS, get_layout
from tabular_import.logging.error_log import ErrorLogBuffer
from tabular_import.logging.init import log_summary, set_debug, setup_logging
from tabular_import.models.config_models import ImportConfig
from tabular_import.parsing.reader import FileKind, ParseError
from tabular_import.parsing.template import write_template
from tabular_import.remote.gateway import DryRunGateway, GatewayError, RecordGateway
from tabular_import.services.orchestrator import (
    PreparedImport,
    load_catalog,
    load_upload,
    parse_upload,
    prepare_import,
    record_parse_error,
    record_validation_errors,
    submit_prepared,
)
from tabular_import.services.progress import ProgressTracker
from tabular_import.services.summary import render_summary_line
from tabular_import.services.validation_table import build_validation_table, render_validation_table

"""CLI entrypoint.

Subcommands:
- template KIND   write the import template (xlsx or csv)
- validate KIND FILE   parse + validate, print the validation table
- import KIND FILE   parse + validate + submit valid rows, print SUMMARY

Exit codes: 0 everything valid and created, 2 partial failure (invalid or
failed rows), 1 fatal (config, unreadable file, nothing to submit, gateway).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

TARGET_API = "api"
TARGET_DB = "db"
TARGET_CONFIG = "config"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True により .env の値で既存環境変数を上書きし、API / PostgreSQL 接続情報を最優先化。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="tabular-import", description="Bulk CSV / workbook importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("template", help="Write the import template for KIND")
    t.add_argument("kind", choices=KINDS)
    t.add_argument("--format", choices=("xlsx", "csv"), default="xlsx")
    t.add_argument("--output", type=Path, default=None)

    v = sub.add_parser("validate", help="Parse and validate FILE without submitting")
    v.add_argument("kind", choices=KINDS)
    v.add_argument("file", type=Path)
    v.add_argument(
        "--target",
        choices=(TARGET_CONFIG, TARGET_API, TARGET_DB),
        default=TARGET_CONFIG,
        help="Where reference data comes from (default: config reference_entities)",
    )

    i = sub.add_parser("import", help="Validate FILE and create every valid row")
    i.add_argument("kind", choices=KINDS)
    i.add_argument("file", type=Path)
    i.add_argument("--target", choices=(TARGET_API, TARGET_DB), default=TARGET_API)
    i.add_argument("--dry-run", action="store_true", help="Validate and rehearse without creating anything")
    i.add_argument("--workshop-id", type=int, default=None, help="Target workshop (participants only)")
    return p.parse_args(argv)


def _build_gateway(cfg: ImportConfig, target: str) -> RecordGateway:
    if target == TARGET_API:
        from tabular_import.remote.http_gateway import HttpRecordGateway
        return HttpRecordGateway(cfg)
    if target == TARGET_DB:
        from tabular_import.remote.pg_gateway import PostgresRecordGateway
        return PostgresRecordGateway(cfg)
    return DryRunGateway(cfg)


def _cmd_template(args: argparse.Namespace, logger: logging.Logger) -> int:
    layout = get_layout(args.kind)
    kind = FileKind.WORKBOOK if args.format == "xlsx" else FileKind.DELIMITED
    try:
        path = write_template(layout, kind, args.output)
    except OSError as e:
        logger.error(f"template: {e}")
        return EXIT_FATAL
    logger.info(f"template written: {path}")
    return EXIT_SUCCESS_ALL


async def _prepare(
    args: argparse.Namespace,
    layout: ImportLayout,
    gateway: RecordGateway,
    error_log: ErrorLogBuffer,
) -> PreparedImport:
    try:
        upload = load_upload(args.file)
        raw_rows = parse_upload(upload, layout)
    except ParseError as e:
        record_parse_error(error_log, args.file.name, layout.kind, e)
        raise
    catalog = await load_catalog(gateway, layout)
    return prepare_import(upload, layout, catalog, raw_rows)


async def _validate(args: argparse.Namespace, cfg: ImportConfig, error_log: ErrorLogBuffer) -> int:
    layout = get_layout(args.kind, cfg.validation)
    gateway = _build_gateway(cfg, args.target)
    try:
        prepared = await _prepare(args, layout, gateway, error_log)
    finally:
        await gateway.close()
    record_validation_errors(error_log, prepared)
    print(render_validation_table(build_validation_table(layout, prepared.results)))
    invalid = len(prepared.results) - len(prepared.valid_results)
    log_summary(f"kind={layout.kind} file={prepared.upload.name} rows={len(prepared.results)} "
                f"valid={len(prepared.valid_results)} invalid={invalid}")
    return EXIT_SUCCESS_ALL if invalid == 0 else EXIT_PARTIAL_FAILURE


async def _import(
    args: argparse.Namespace,
    cfg: ImportConfig,
    error_log: ErrorLogBuffer,
    logger: logging.Logger,
) -> int:
    layout = get_layout(args.kind, cfg.validation)
    context: dict[str, int] = {}
    if layout.kind == "participants":
        if args.workshop_id is None:
            logger.error("import: --workshop-id is required for participants")
            return EXIT_FATAL
        context["workshop_id"] = args.workshop_id

    gateway = DryRunGateway(cfg) if args.dry_run else _build_gateway(cfg, args.target)
    try:
        prepared = await _prepare(args, layout, gateway, error_log)
        table = build_validation_table(layout, prepared.results)
        if len(prepared.valid_results) < len(prepared.results):
            print(render_validation_table(table, only_invalid=True))
        if not prepared.valid_results:
            record_validation_errors(error_log, prepared)
            logger.error(f"import: no valid rows to submit in {prepared.upload.name}")
            return EXIT_FATAL

        logger.info(
            f"submitting {len(prepared.valid_results)} row(s) "
            f"mode={'dry-run' if args.dry_run else args.target}"
        )
        with ProgressTracker(len(prepared.valid_results)) as tracker:
            run = await submit_prepared(
                prepared,
                gateway,
                pause_seconds=cfg.submission.pause_seconds,
                context=context,
                error_log=error_log,
                on_progress=tracker,
            )
    finally:
        await gateway.close()

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(run).removeprefix("SUMMARY "))
    if run.invalid_rows or run.summary.failure_count:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む (テストで main([]) を呼ぶケース)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    if args.command == "template":
        return _cmd_template(args, logger)

    # .env を最優先で読み込む (API / DB 接続パラメータ優先順位保証)
    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    error_log = ErrorLogBuffer(Path(cfg.logs_directory))
    try:
        if args.command == "validate":
            return asyncio.run(_validate(args, cfg, error_log))
        return asyncio.run(_import(args, cfg, error_log, logger))
    except ParseError as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL
    except GatewayError as e:
        logger.error(f"gateway: {e}")
        return EXIT_FATAL
    finally:
        path = error_log.flush()
        if path is not None:
            logger.info(f"error log: {path}")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
