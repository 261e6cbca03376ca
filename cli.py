"""
Run the BizPulse report from the command line.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from alerts import build_alert_sink
from config import configure_logging, get_settings
from ingest import IngestionError
from llm_client import build_narrator
from pipeline import run_pipeline

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Analyze a sales CSV and write a markdown report.")
    parser.add_argument("--file", required=True, type=Path, help="CSV file to analyze.")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("report.md"),
        help="Markdown report path (default: report.md).",
    )
    parser.add_argument(
        "--json",
        dest="json_path",
        type=Path,
        default=None,
        help="Also write the structured report as JSON.",
    )
    parser.add_argument("--no-summary", action="store_true", help="Skip the AI executive summary.")
    parser.add_argument("--no-alert", action="store_true", help="Do not post a Slack alert.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    narrator = None if args.no_summary else build_narrator(settings)
    alert_sink = None if args.no_alert else build_alert_sink(settings)

    try:
        result = run_pipeline(args.file, narrator=narrator, alert_sink=alert_sink)
    except (IngestionError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    args.output.write_text(result.markdown, encoding="utf-8")
    print(f"Wrote {args.output}")

    if args.json_path is not None:
        with open(args.json_path, "w", encoding="utf-8") as f:
            json.dump(result.to_structured(), f, indent=2, ensure_ascii=False)
        print(f"Wrote {args.json_path}")

    if result.alert_message and alert_sink is None:
        logger.info("Alert not sent (no webhook configured): %s", result.alert_message)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
