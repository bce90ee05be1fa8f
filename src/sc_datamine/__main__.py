"""
Main entry point for sc_datamine.
Usage: python -m sc_datamine [--config FILE] [--variant og|oz] [--output FILE] [--log-level LEVEL] [--lenient]

Command line options apply to one run and are not stored in the settings.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .errors import DataMineError
from .service import DataMineService
from .settings import AppSettings, ConfigError, MapVariant
from .settings.logging import VALID_LEVELS
from .utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sc_datamine",
        description="Extract races, artifacts and neutrals from decoded Survival Chaos map data.",
    )
    parser.add_argument("--config", type=Path, help="INI settings file (default: native storage)")
    parser.add_argument("--variant", choices=[v.value for v in MapVariant], help="Map variant to extract")
    parser.add_argument("--output", type=Path, help="JSON file to write (default: configured file, else stdout)")
    parser.add_argument("--log-level", type=str.upper, choices=VALID_LEVELS, help="Log level for this run")
    parser.add_argument(
        "--lenient", action="store_true", help="Log and drop missing required links instead of failing"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    logger = logging.getLogger(f"{__name__}.main")

    try:
        settings = AppSettings(settings_file=args.config)
        variant = MapVariant.parse(args.variant) if args.variant else settings.map_variant
        output_path = args.output or settings.output_path
        strict_links = settings.strict_links and not args.lenient

        setup_logging(settings, args.log_level)
        logger.info(f"Starting sc_datamine {__version__}")
        logger.info(f"Configuration loaded from {settings.get_settings_file_path()}")
        logger.info(f"Variant '{variant.value}', strict links: {strict_links}")

        validation = settings.validate(variant)
        if validation.warnings:
            logger.warning("Configuration warnings detected:")
            for warning in validation.warnings:
                logger.warning(f"  {warning}")

        if not validation.is_valid:
            logger.error("Configuration validation failed:")
            for error in validation.errors:
                logger.error(f"  {error}")
            return 1

        service = DataMineService(settings, variant=variant, strict_links=strict_links)
        payload = service.extract().to_json()

        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(payload)
            logger.info(f"Wrote {len(payload)} bytes to {output_path}")
        else:
            sys.stdout.buffer.write(payload + b"\n")
        return 0

    except (DataMineError, ConfigError) as e:
        logger.error(f"Extraction failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
