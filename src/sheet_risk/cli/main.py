"""Main CLI entry point."""

import argparse
import asyncio
import json
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(
        prog="sheet-risk", description="Enrich Google Sheet rows with AI risk predictions"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (environment variables override it)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # process
    process_parser = subparsers.add_parser("process", help="Process a queue event file")
    process_parser.add_argument(
        "--event",
        type=Path,
        required=True,
        help='Queue event JSON ({"Records": [{"messageId": ..., "body": ...}]})',
    )
    process_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write batch response to file (default: stdout)",
    )

    # predict
    predict_parser = subparsers.add_parser("predict", help="Predict risk for one row")
    predict_parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Row JSON object keyed by column header",
    )

    # records
    records_parser = subparsers.add_parser("records", help="Query stored records")
    records_parser.add_argument("action", choices=["list", "get"], help="List records or get one")
    records_parser.add_argument("--spreadsheet", type=str, default=None, help="Spreadsheet ID")
    records_parser.add_argument("--row", type=int, default=None, help="Row index (for get)")
    records_parser.add_argument("--owner", type=str, default=None, help="Owner ID")

    # ping
    subparsers.add_parser("ping", help="Check the document store connection")

    args = parser.parse_args(argv)

    from sheet_risk.logging_setup import configure_logging

    configure_logging("DEBUG" if args.verbose else None)

    if args.command == "process":
        _run_process(args)
    elif args.command == "predict":
        _run_predict(args)
    elif args.command == "records":
        _run_records(args)
    elif args.command == "ping":
        _run_ping(args)
    else:
        parser.print_help()


def _load_settings(args: argparse.Namespace):
    """Settings from --config or the environment. Exits on configuration errors."""
    from sheet_risk.config import Settings
    from sheet_risk.errors import ConfigurationError

    try:
        if args.config is not None:
            return Settings.from_yaml(args.config)
        return Settings.from_env()
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)


def _read_json(path: Path):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SystemExit(f"Cannot read {path}: {e}")


def _run_process(args: argparse.Namespace) -> None:
    """Run process command."""
    from sheet_risk.worker import Worker

    settings = _load_settings(args)
    event = _read_json(args.event)
    if not isinstance(event, dict) or not isinstance(event.get("Records"), list):
        raise SystemExit(f"{args.event} must contain an object with a Records list")

    async def _process():
        async with Worker.from_settings(settings) as worker:
            return await worker.process(event["Records"])

    result = asyncio.run(_process())
    output = json.dumps(result.to_response(), indent=2)
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        print(f"Processed {len(result.outcomes)} records: {result.succeeded} ok, {result.failed} failed (wrote to {args.output})")
    else:
        print(output)
    for outcome in result.outcomes:
        if not outcome.succeeded:
            print(
                f"  {outcome.message_id}: failed at {outcome.failed_at} ({outcome.error_type}: {outcome.error})",
                file=sys.stderr,
            )


def _run_predict(args: argparse.Namespace) -> None:
    """Run predict command."""
    from sheet_risk.errors import PredictionError
    from sheet_risk.prediction import PredictionClient, build_backend
    from sheet_risk.retry import RetryPolicy

    settings = _load_settings(args)
    row = _read_json(args.input)
    if not isinstance(row, dict):
        raise SystemExit(f"{args.input} must contain a JSON object")

    async def _predict():
        client = PredictionClient(
            build_backend(settings),
            RetryPolicy(max_attempts=settings.max_retries, base_delay=settings.retry_base_delay),
        )
        try:
            return await client.predict(row)
        finally:
            await client.close()

    try:
        prediction = asyncio.run(_predict())
    except PredictionError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1)
    print(json.dumps(prediction.model_dump(mode="json"), indent=2))


def _run_records(args: argparse.Namespace) -> None:
    """Run records command."""
    from sheet_risk.models import RecordKey
    from sheet_risk.store import build_store

    settings = _load_settings(args)
    if args.action == "get" and (args.spreadsheet is None or args.row is None):
        raise SystemExit("records get requires --spreadsheet and --row")

    async def _query():
        store = build_store(settings)
        try:
            if args.action == "get":
                key = RecordKey(spreadsheet_id=args.spreadsheet, row_index=args.row, owner_id=args.owner)
                return await store.get(key)
            return await store.find(spreadsheet_id=args.spreadsheet, owner_id=args.owner)
        finally:
            await store.close()

    data = asyncio.run(_query())
    if args.action == "get" and data is None:
        print("Record not found.", file=sys.stderr)
        raise SystemExit(1)
    print(json.dumps(data, indent=2, default=str))


def _run_ping(args: argparse.Namespace) -> None:
    """Run ping command."""
    from sheet_risk.errors import StoreError
    from sheet_risk.store import build_store

    settings = _load_settings(args)

    async def _ping():
        store = build_store(settings)
        try:
            await store.ping()
        finally:
            await store.close()

    try:
        asyncio.run(_ping())
    except StoreError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1)
    print("ok")


if __name__ == "__main__":
    main()
