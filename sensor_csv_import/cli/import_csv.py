from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import yaml

from sensor_csv_import.data_processing.csv_import import ImportSession, import_path, summarize
from sensor_csv_import.data_processing.errors import TransportError
from sensor_csv_import.storage.sqlite_store import SqliteStore, validate_time_zone
from sensor_csv_import.utils.config import ensure_dirs, load_config
from sensor_csv_import.utils.files import save_json
from sensor_csv_import.utils.logging import setup_logging

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED_FILES = 1
EXIT_BAD_CONFIG = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="sensor-csv-import",
        description="Load device measurement CSV files into the record store.",
    )
    p.add_argument(
        "-f",
        "--file",
        required=True,
        help="A .csv file, or a directory whose .csv files are all imported (not recursive).",
    )
    p.add_argument("--config", help="Path to YAML config (supports extends).")
    p.add_argument("--db", help="SQLite database path (overrides store.db_path).")
    p.add_argument("-tz", "--time-zone", help="Time zone, e.g. +08:00 or -01:00.")
    p.add_argument(
        "--null-values",
        help="Comma-separated cell values stored as absent (default: empty and 'null'). Pass '' for none.",
    )
    p.add_argument("--report", help="Write a JSON summary of the run to this path.")
    p.add_argument("--no-progress", action="store_true", help="Disable the per-file progress bar.")
    p.add_argument("--log-level", help="Logging level (overrides logging.level).")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        cfg = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        setup_logging()
        log.error("Cannot load config: %s", e)
        return EXIT_BAD_CONFIG

    if args.db:
        cfg["store"]["db_path"] = args.db
    if args.time_zone:
        cfg["store"]["time_zone"] = args.time_zone
    if args.null_values is not None:
        cfg["import"]["null_values"] = args.null_values.split(",") if args.null_values else []
    if args.no_progress:
        cfg["import"]["progress"] = False
    if args.log_level:
        cfg["logging"]["level"] = args.log_level

    ensure_dirs(cfg)
    setup_logging(level=cfg["logging"].get("level", "INFO"), log_file=cfg["logging"].get("file"))

    store = SqliteStore(cfg["store"]["db_path"])
    try:
        session = ImportSession.from_config(cfg, store)
        if session.time_zone:
            validate_time_zone(session.time_zone)
    except ValueError as e:
        log.error("Args error: %s", e)
        return EXIT_BAD_CONFIG

    try:
        with store:
            if session.time_zone:
                store.set_time_zone(session.time_zone)
            results = import_path(Path(args.file), session)
    except TransportError as e:
        log.error("Encounter an error with the record store, because: %s", e)
        return EXIT_FAILED_FILES

    summary = summarize(results)
    log.info(
        "Done: %d imported, %d skipped, %d failed (%d entries)",
        summary["imported"],
        summary["skipped"],
        summary["failed"],
        summary["entries"],
    )
    if args.report:
        save_json(args.report, summary)

    return EXIT_FAILED_FILES if summary["failed"] else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
