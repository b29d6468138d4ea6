import argparse
from datetime import datetime
import logging
import sys
import time

from mzkit import __version__
from mzkit.exceptions import MzkitError
from mzkit.raw_file import read_raw_data, write_raw_data
from mzkit.reporting.scan_tables import build_scan_table
from mzkit.settings import DecodeSettings
from mzkit.utils import utils


def setup_logging(level: str = "INFO", log_path: str | None = None) -> None:
    """Setup logging."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_path:
        handlers.append(logging.FileHandler(log_path))
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
        force=True
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mzkit",
        description="Decode mzXML and mzData files, convert them to mzData."
    )
    parser.add_argument("input", help="mzXML or mzData file to read.")
    parser.add_argument(
        "-o", "--output",
        help="Write the decoded data to this mzData file."
    )
    parser.add_argument(
        "-s", "--summary",
        help="Write a CSV table with one row per scan."
    )
    parser.add_argument(
        "--settings",
        help="CSV file with 'Setting' and 'Value' columns."
    )
    parser.add_argument(
        "--log-file",
        help="Also write log messages to this file."
    )
    parser.add_argument(
        "--version", action="version", version=f"mzkit {__version__}"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = (
            DecodeSettings.import_settings(args.settings)
            if args.settings else DecodeSettings()
        )
    except MzkitError as e:
        setup_logging(log_path=args.log_file)
        logging.error(str(e))
        return 1

    # Setup global logging.
    setup_logging(settings.log_level, args.log_file)
    logging.info(
        f"mzkit {__version__} started at "
        f"{datetime.now().strftime('%d-%m-%Y %H:%M')}"
    )
    start_time = time.time()

    try:
        raw_data = read_raw_data(args.input, settings)
        logging.info(utils.summarize(raw_data))
        if args.summary:
            build_scan_table(raw_data).to_csv(args.summary, index=False)
            logging.info(f"Scan table written to: {args.summary}")
        if args.output:
            write_raw_data(raw_data, args.output)
            logging.info(f"mzData written to: {args.output}")
    except MzkitError as e:
        logging.error(f"{e.__class__.__name__}: {e}")
        return 1
    except OSError as e:
        logging.error(f"Could not access file: {e}")
        return 1

    logging.info(utils.format_execution_time(start_time, time.time()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
