#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Rip a CGP online book to a single PDF.

Requires:
  pip install -e .
  playwright install chromium

Usage:
  cgp-ripper configure <ASP.NET_SessionId>
  cgp-ripper rip --book <id> --pages <n> --quality <1-4> [--uni <token>]
"""

import argparse
import logging
import sys

from . import __version__
from .errors import RipError
from .rip import DEFAULT_OUTPUT_DIR, DEFAULT_WORKERS, rip
from .session import DEFAULT_CONFIG_FILE, save_session_id

################################################################################
# LOGGING SETUP
################################################################################

def setup_logging(verbose: bool = False, quiet: bool = False):
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


################################################################################
# COMMANDS
################################################################################

def cmd_configure(args):
    save_session_id(args.session_id, args.file)
    logging.info("Session configured")


def cmd_rip(args):
    result = rip(
        book_id=args.book,
        pages=args.pages,
        quality=args.quality,
        uni=args.uni,
        config_file=args.file,
        output_dir=args.output,
        max_workers=args.workers,
    )
    logging.info(
        f"Book ripped successfully: {len(result.ripped)} pages -> {result.output_path}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cgp-ripper", description="Rip a CGP book to PDF")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    configure = subparsers.add_parser("configure", help="Configure your CGP session")
    configure.add_argument("session_id", metavar="session-id", help="ASP.NET_SessionId")
    configure.add_argument("-f", "--file", default=DEFAULT_CONFIG_FILE, help="Path to config file")
    configure.set_defaults(func=cmd_configure)

    rip_cmd = subparsers.add_parser("rip", help="Rip a CGP book to PDF")
    rip_cmd.add_argument("-b", "--book", help="Book ID")
    rip_cmd.add_argument("-p", "--pages", help="Number of pages to rip")
    rip_cmd.add_argument("-q", "--quality", help="Background quality (1-4)")
    rip_cmd.add_argument("-u", "--uni", help="UNI token for SVG access")
    rip_cmd.add_argument("-f", "--file", default=DEFAULT_CONFIG_FILE, help="Path to config file")
    rip_cmd.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    rip_cmd.add_argument("-w", "--workers", type=int, default=DEFAULT_WORKERS,
                         help="Concurrent page downloads")
    rip_cmd.add_argument("-v", "--verbose", action="store_true", help="Enable debug output")
    rip_cmd.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    rip_cmd.set_defaults(func=cmd_rip)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(getattr(args, "verbose", False), getattr(args, "quiet", False))

    try:
        args.func(args)
    except (RipError, ValueError) as exc:
        logging.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
