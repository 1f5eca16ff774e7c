# -*- coding: utf-8 -*-
"""
Command-line entry point (``skyward-scrape``).

Credentials come from ``--username``/``--password`` or the
``SKYWARD_USERNAME``/``SKYWARD_PASSWORD`` environment variables (a ``.env``
file is loaded first). Each run appends one JSON line to ``--output``.
"""
import argparse
import asyncio
import json
import logging
import os
import pathlib
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .client import SkywardClient
from .config import ScraperConfig, config_from_env, load_config
from .to_excel import write_courses_excel

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = pathlib.Path("output") / "skyward" / "grades.jsonl"


def build_config(args: argparse.Namespace) -> ScraperConfig:
    base = load_config(args.config) if args.config else ScraperConfig()
    cfg = config_from_env(base)
    if args.debug:
        cfg.debug = True
    return cfg


async def run(args: argparse.Namespace, client: Optional[SkywardClient] = None) -> Dict[str, Any]:
    """Run the requested operation and return its wire-shape result."""
    client = client or SkywardClient(build_config(args))
    try:
        if args.test:
            operation = "test_connection"
            result = await client.test_connection(args.username, args.password)
        elif args.course:
            operation = "course_details"
            result = await client.scrape_course_details(args.username, args.password, args.course)
        else:
            operation = "grades"
            result = await client.scrape_grades(args.username, args.password)
    finally:
        await client.close()

    record = {"operation": operation, "timestamp": datetime.now(timezone.utc).isoformat()}
    record.update(result.to_dict())
    return record


def write_record(record: Dict[str, Any], out_file: pathlib.Path) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    with open(out_file, "a", encoding="utf-8") as f:
        f.write(json.dumps(record) + "\n")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scrape grades from the Skyward student portal.")
    parser.add_argument("-u", "--username", default=None, help="Skyward login (default: $SKYWARD_USERNAME).")
    parser.add_argument("-p", "--password", default=None, help="Skyward password (default: $SKYWARD_PASSWORD).")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--course", help="Fetch details for one course instead of all grades.")
    mode.add_argument("--test", action="store_true", help="Only check that the credentials log in.")
    parser.add_argument("-c", "--config", type=pathlib.Path, help="JSON file with scraper settings.")
    parser.add_argument("-o", "--output", type=pathlib.Path, default=DEFAULT_OUTPUT, help="JSONL file to append to.")
    parser.add_argument("--excel", type=pathlib.Path, help="Also write the courses to this .xlsx file.")
    parser.add_argument("--dotenv", type=pathlib.Path, help="Load environment from this file instead of ./.env.")
    parser.add_argument("--debug", action="store_true", help="Save screenshots and DOM dumps.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args(argv)

    if args.dotenv:
        load_dotenv(args.dotenv)
    else:
        load_dotenv()
    args.username = args.username or os.getenv("SKYWARD_USERNAME")
    args.password = args.password or os.getenv("SKYWARD_PASSWORD")
    if not args.username or not args.password:
        parser.error("credentials required: pass --username/--password or set SKYWARD_USERNAME/SKYWARD_PASSWORD")
    return args


def cli(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    record = asyncio.run(run(args))
    write_record(record, args.output)

    if record["success"]:
        print(f"SUCCESS: {record['operation']} (saved to {args.output})")
    else:
        print(f"ERROR: {record.get('error')} (details in {args.output})")

    if args.excel and record.get("courses"):
        write_courses_excel(record["courses"], args.excel)
        print(f"Excel report written to {args.excel}")
    sys.exit(0 if record["success"] else 1)


if __name__ == "__main__":
    cli()
