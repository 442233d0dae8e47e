#!/usr/bin/env python
"""
Calendar Extractor – CLI entry point.

Usage:
    # Parse a calendar workbook into structured JSON
    python -m calendar_extractor.main parse <excel_file> [--commodity maize] [--config config.yaml]
                                            [--output calendar.json] [--log-level DEBUG]

    # List supported commodities
    python -m calendar_extractor.main commodities

    # Print the default template calendar of a commodity
    python -m calendar_extractor.main template <commodity> [--output template.json]
"""

import argparse
import json
import logging
import os
import sys

from calendar_extractor.classifier import calendar_type_for, normalize_commodity, supported_commodities
from calendar_extractor.config import load_config
from calendar_extractor.engine import parse_workbook
from calendar_extractor.synthesizer import Calendar
from calendar_extractor.templates import synthesize
from calendar_extractor.timeline import synthetic_timeline


def setup_logging(level_str: str = "INFO"):
    """Configure logging."""
    level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def write_json(data, output_path=None):
    text = json.dumps(data, indent=2)
    if output_path:
        os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        print(f"Written to {output_path}")
    else:
        print(text)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Agricultural calendar workbook -> structured calendar"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # ---- parse ----
    p_parse = sub.add_parser("parse", help="Extract the calendar from an Excel workbook")
    p_parse.add_argument("excel_file", help="Path to the calendar workbook (.xlsx)")
    p_parse.add_argument("--commodity", default=None, help="Declared commodity (e.g. maize, layer)")
    p_parse.add_argument("--config", default=None, help="Path to config YAML file")
    p_parse.add_argument("--output", default=None, help="Write JSON here instead of stdout")
    p_parse.add_argument("--log-level", default=None, help="Logging level (default: from config)")

    # ---- commodities ----
    sub.add_parser("commodities", help="List supported commodities")

    # ---- template ----
    p_tpl = sub.add_parser("template", help="Print the default calendar of a commodity")
    p_tpl.add_argument("commodity", help="Commodity name")
    p_tpl.add_argument("--output", default=None, help="Write JSON here instead of stdout")

    args = parser.parse_args(argv)

    if args.command == "parse":
        config = load_config(args.config)
        setup_logging(args.log_level or config.get("log_level", "INFO"))
        if not os.path.exists(args.excel_file):
            print(f"Error: File '{args.excel_file}' not found.")
            sys.exit(1)
        metadata = {"filename": os.path.basename(args.excel_file)}
        if args.commodity:
            metadata["commodity"] = args.commodity
        result = parse_workbook(args.excel_file, metadata, config)
        write_json(result.to_dict(), args.output)
        if not result.success:
            sys.exit(1)

    elif args.command == "commodities":
        for name in supported_commodities():
            print(f"{name:<12} {calendar_type_for(name)}")

    elif args.command == "template":
        commodity = normalize_commodity(args.commodity)
        if commodity is None:
            print(f"Error: Unknown commodity '{args.commodity}'. "
                  f"Supported: {', '.join(supported_commodities())}")
            sys.exit(1)
        timeline = synthetic_timeline()
        calendar = Calendar(calendar_type_for(commodity), commodity, timeline,
                            synthesize(commodity, timeline), synthesized=True)
        write_json(calendar.to_dict(), args.output)


if __name__ == "__main__":
    main()
