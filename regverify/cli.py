"""CLI entrypoint for registration verification."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from regverify.batch.processor import BatchProcessor
from regverify.batch.report import write_batch_report
from regverify.common.config_loader import Settings, load_settings
from regverify.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from regverify.common.errors import ContractError, IngestError, RegverifyError
from regverify.common.fs import read_identifier_lines
from regverify.common.http import HttpClient, TimeoutConfig
from regverify.common.ids import generate_run_id, validate_run_id
from regverify.common.logging import build_logger, log_event
from regverify.ingest.extract import ExtractionResult, extract_identifiers, missing_identifiers_message
from regverify.ingest.parsers import parse_file
from regverify.lookup.client import LookupClient
from regverify.lookup.service import search


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("target", nargs="?", default=None, help="identifier (search) or upload file (batch)")
    parser.add_argument("--ids-file", default=None, help="plain text file with one identifier per line")
    parser.add_argument("--concurrency", type=int, default=None)
    parser.add_argument("--delay", type=float, default=None, help="seconds between waves")
    parser.add_argument("--timeout", type=float, default=None, help="per-request timeout in seconds")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--out-dir", default="./out")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


@contextmanager
def build_client(settings: Settings) -> Iterator[LookupClient]:
    with HttpClient(timeout=TimeoutConfig.uniform(settings.batch.request_timeout)) as http:
        yield LookupClient(http, settings.api_url)


def collect_identifiers(
    args: argparse.Namespace, settings: Settings, logger: logging.Logger
) -> tuple[list[str], ExtractionResult | None]:
    try:
        if args.ids_file:
            return read_identifier_lines(Path(args.ids_file)), None
        if not args.target:
            raise ContractError("batch requires an upload file or --ids-file")
        path = Path(args.target)
        data = path.read_bytes()
    except OSError as exc:
        raise IngestError(f"Unable to read input: {exc}") from exc

    parsed = parse_file(path.name, data, settings.supported_extensions)
    extraction = extract_identifiers(
        parsed.rows,
        parsed.file_type,
        settings.field_mappings[parsed.file_type],
        required_council=settings.required_council,
        logger=logger,
    )
    if not extraction.identifiers:
        message = missing_identifiers_message(
            parsed.file_type,
            settings.field_mappings[parsed.file_type],
            extraction.skipped_count,
            extraction.total_rows,
        )
        log_event(logger, message, level=logging.WARNING, stage="extract", event="NO_IDENTIFIERS", status="empty")
    return extraction.identifiers, extraction


def run_search(args: argparse.Namespace, settings: Settings, logger: logging.Logger) -> int:
    timeout = args.timeout if args.timeout is not None else settings.batch.request_timeout
    with build_client(settings) as client:
        records = search(client, args.target or "", timeout=timeout, logger=logger)

    payload = {
        "results": [record.to_dict() for record in records],
        "message": None if records else "No results found",
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return EXIT_SUCCESS if records else EXIT_PARTIAL


def run_batch(args: argparse.Namespace, settings: Settings, logger: logging.Logger, run_id: str) -> int:
    identifiers, extraction = collect_identifiers(args, settings, logger)
    if not identifiers:
        return EXIT_PARTIAL

    def _progress(completed: int, total: int) -> None:
        log_event(
            logger,
            f"progress {completed}/{total}",
            stage="batch",
            event="PROGRESS",
            status="ok",
            rows_out=completed,
        )

    with build_client(settings) as client:
        processor = BatchProcessor(client, settings.batch, logger=logger)
        response = processor.process(
            identifiers,
            on_progress=_progress,
            batch_concurrency=args.concurrency,
            inter_wave_delay=args.delay,
            request_timeout=args.timeout,
        )

    summary_path = write_batch_report(Path(args.out_dir), run_id, response, extraction)
    print(json.dumps({"run_id": run_id, "summary": str(summary_path), **response.statistics.to_dict()}, indent=2))
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    run_id = validate_run_id(args.run_id) if args.run_id else generate_run_id(args.command)
    out_dir = Path(args.out_dir) if args.command == "batch" else None
    logger = build_logger(run_id, out_dir=out_dir, level=args.log_level)

    try:
        overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
        settings = load_settings(Path(args.config_dir), overlay_config_dir=overlay_config_dir)
        if args.command == "search":
            return run_search(args, settings, logger)
        return run_batch(args, settings, logger, run_id)
    except RegverifyError as exc:
        log_event(
            logger,
            f"{args.command} failed: {exc}",
            level=logging.ERROR,
            stage=args.command,
            event="COMMAND_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except RegverifyError:
        return EXIT_HARD_FAIL
    except Exception:
        logging.getLogger("regverify").exception("unexpected failure")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
