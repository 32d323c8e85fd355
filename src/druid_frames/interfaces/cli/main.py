import argparse
import json
import logging
from pathlib import Path
from typing import Optional

import colorlog
import pandas as pd

from druid_frames.config import load_instance_settings
from druid_frames.core.errors import DruidFramesError
from druid_frames.query import (
    execute_batch,
    parse_query_document,
    process_response,
    query_variable,
)
from druid_frames.sources.client import DruidClient

try:
    from druid_frames import __version__ as _PACKAGE_VERSION
except ImportError:  # pragma: no cover
    _PACKAGE_VERSION = "unknown"  # type: ignore[assignment]

OUTPUT_SUFFIXES = (".csv", ".json")


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = "%(asctime)s:%(levelname)s:%(name)s:%(lineno)d: %(message)s"
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _read_bytes(path_arg: str, what: str) -> Optional[bytes]:
    path = Path(path_arg)
    if not path.exists() or not path.is_file():
        logging.error("%s file not found: %s", what, path)
        return None
    return path.read_bytes()


def _check_output(output: Optional[str]) -> bool:
    if output is None:
        return True
    if Path(output).suffix.lower() not in OUTPUT_SUFFIXES:
        logging.error("Unsupported output format %s (use .csv or .json)", output)
        return False
    return True


def _emit_frame(frame: pd.DataFrame, output: Optional[str], title: Optional[str] = None) -> None:
    """Print a frame or write it to a CSV/JSON file chosen by suffix."""
    if output is None:
        if title:
            print(f"== {title} ==")
        if frame.attrs:
            print(f"attrs: {frame.attrs}")
        print(frame.to_string(index=False))
        return
    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if out_path.suffix.lower() == ".json":
        frame.to_json(out_path, orient="records", date_format="iso")
    else:
        frame.to_csv(out_path, index=False)
    logging.info("Wrote %d rows to %s", len(frame.index), out_path)


def cmd_normalize(args: argparse.Namespace) -> int:
    """Normalize a saved response body without contacting Druid."""
    if not _check_output(args.output):
        return 2
    raw_document = _read_bytes(args.query, "Query document")
    raw_body = _read_bytes(args.response, "Response")
    if raw_document is None or raw_body is None:
        return 2

    try:
        document = parse_query_document(raw_document)
        frame = process_response(raw_body, document.query_type, document.settings)
    except DruidFramesError as e:
        logging.error("Normalization failed: %s", e)
        return 1

    _emit_frame(frame, args.output)
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    """Run one or more query documents against a live Druid broker.

    Every document runs independently; the command fails if any slot failed.
    """
    if args.output and len(args.query) > 1:
        logging.error("--output can only be used with a single --query")
        return 2
    if not _check_output(args.output):
        return 2

    try:
        settings = load_instance_settings(Path(args.config))
    except (FileNotFoundError, ValueError) as e:
        logging.error("Failed to load settings: %s", e)
        return 3

    documents = {}
    for path_arg in args.query:
        raw = _read_bytes(path_arg, "Query document")
        if raw is None:
            return 2
        ref_id = Path(path_arg).stem
        if ref_id in documents:
            logging.error("Duplicate query name: %s", ref_id)
            return 2
        documents[ref_id] = raw

    with DruidClient(settings.url, timeout_sec=settings.timeout_sec) as client:
        responses = execute_batch(documents, client, settings, max_workers=args.workers)

    failed = 0
    for ref_id, response in responses.items():
        if response.error is not None:
            failed += 1
            continue
        _emit_frame(response.frame, args.output, title=ref_id if len(responses) > 1 else None)
    logging.info("Queries: ok=%d failed=%d", len(responses) - failed, failed)
    return 0 if failed == 0 else 1


def cmd_variables(args: argparse.Namespace) -> int:
    """Print the template variable options a query produces as JSON."""
    try:
        settings = load_instance_settings(Path(args.config))
    except (FileNotFoundError, ValueError) as e:
        logging.error("Failed to load settings: %s", e)
        return 3
    raw = _read_bytes(args.query, "Query document")
    if raw is None:
        return 2

    try:
        with DruidClient(settings.url, timeout_sec=settings.timeout_sec) as client:
            options = query_variable(raw, client, settings)
    except DruidFramesError as e:
        logging.error("Variable query failed: %s", e)
        return 1

    print(json.dumps([o.to_dict() for o in options], ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="druid-frames",
        description=f"Druid result normalization (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_normalize = sub.add_parser(
        "normalize", help="Normalize a saved Druid response using a query document"
    )
    p_normalize.add_argument("--query", required=True, help="Path to the query document JSON")
    p_normalize.add_argument("--response", required=True, help="Path to the raw response JSON")
    p_normalize.add_argument(
        "--output",
        default=None,
        help="Write the frame to this .csv or .json file instead of printing it",
    )
    p_normalize.set_defaults(func=cmd_normalize)

    p_query = sub.add_parser("query", help="Run query documents against Druid")
    p_query.add_argument(
        "--config",
        default=str(Path("config/druid.yaml")),
        help="Path to the instance settings YAML (defaults to ./config/druid.yaml)",
    )
    p_query.add_argument(
        "--query",
        required=True,
        action="append",
        help="Path to a query document JSON (repeat for a batch; the file stem names the slot)",
    )
    p_query.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Run a batch in this many threads (default: sequential)",
    )
    p_query.add_argument(
        "--output",
        default=None,
        help="Write the frame to this .csv or .json file (single query only)",
    )
    p_query.set_defaults(func=cmd_query)

    p_variables = sub.add_parser(
        "variables", help="Print template variable options produced by a query"
    )
    p_variables.add_argument(
        "--config",
        default=str(Path("config/druid.yaml")),
        help="Path to the instance settings YAML (defaults to ./config/druid.yaml)",
    )
    p_variables.add_argument("--query", required=True, help="Path to the query document JSON")
    p_variables.set_defaults(func=cmd_variables)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
