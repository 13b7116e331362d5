"""
Command line interface.

    receipt-printer status [--json] [--no-color]
    receipt-printer print FILE [--no-cut] [--feed N]
    receipt-printer config [--save]

Files ending in .md or .markdown are compiled from markdown; anything else is
sent to the printer as-is. Device selection comes from --vendor-id /
--product-id, then RECEIPTPRINTER_* environment variables, then the JSON
config file.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from receipt_printer.core.config import get_config_path, load_settings, save_config
from receipt_printer.core.errors import ConfigError, ReceiptPrinterError
from receipt_printer.core.logging import configure_logging
from receipt_printer.core.schemas import PrinterSettings
from receipt_printer.printing.printer import Printer
from receipt_printer.protocol.status import format_status

logger = logging.getLogger(__name__)

MARKUP_SUFFIXES = (".md", ".markdown")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _feed_lines(value: str) -> int:
    """argparse type for --feed: ESC d takes a single byte."""
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid line count: {value!r}")
    if not 0 <= n <= 255:
        raise argparse.ArgumentTypeError(f"line count must be between 0 and 255, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="receipt-printer",
        description="Talk to an ESC/POS receipt printer over USB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--vendor-id", help="USB vendor ID in hex (default: 0x04b8)")
    parser.add_argument("--product-id", help="USB product ID in hex (default: 0x0202)")
    parser.add_argument(
        "--simulate",
        action="store_true",
        default=None,
        help="Use the interactive hex transport instead of a USB device",
    )
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")

    sub = parser.add_subparsers(dest="command", required=True)

    status_p = sub.add_parser("status", help="Print the decoded printer status")
    status_p.add_argument("--json", action="store_true", help="Print the status as JSON")
    status_p.add_argument("--no-color", action="store_true", help="Disable ANSI colors")

    print_p = sub.add_parser("print", help="Print a text or markdown file, then cut")
    print_p.add_argument("file", help="File to print")
    print_p.add_argument("--no-cut", action="store_true", help="Do not cut the paper afterwards")
    print_p.add_argument("--feed", type=_feed_lines, default=0, help="Lines to feed before cutting, 0-255 (default: 0)")
    print_p.add_argument(
        "--text-policy",
        choices=["raw", "strip"],
        default=None,
        help="Control characters in markdown text: pass through (raw) or remove (strip)",
    )

    config_p = sub.add_parser("config", help="Show the effective settings as JSON")
    config_p.add_argument(
        "--save",
        action="store_true",
        help="Write the effective settings to the config file (--config or the default path)",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> PrinterSettings:
    overrides = {
        "usb_vendor_id": args.vendor_id,
        "usb_product_id": args.product_id,
        "simulate": args.simulate,
        "text_policy": getattr(args, "text_policy", None),
    }
    return load_settings(args.config, overrides=overrides)


def _cmd_config(settings: PrinterSettings, args: argparse.Namespace) -> int:
    data = settings.to_config()
    if args.save:
        path = args.config or get_config_path()
        try:
            save_config(data, path=path)
        except OSError as e:
            print(f"Error: cannot write {path}: {e.strerror or e}", file=sys.stderr)
            return EXIT_FAILURE
        logger.info("Saved settings to %s", path)
        print(f"Saved settings to {path}")
        return EXIT_OK
    print(json.dumps(data, indent=2))
    return EXIT_OK


def _cmd_status(printer: Printer, args: argparse.Namespace) -> int:
    status = printer.status()
    if status is None:
        print("Failed to retrieve printer status.")
        return EXIT_FAILURE
    if args.json:
        print(json.dumps(status.to_dict()))
    else:
        color = not args.no_color and sys.stdout.isatty()
        print(format_status(status, color=color))
    return EXIT_OK


def _cmd_print(printer: Printer, args: argparse.Namespace, payload: bytes) -> int:
    path = Path(args.file)
    if path.suffix.lower() in MARKUP_SUFFIXES:
        printer.print_markup(payload.decode("utf-8"))
    else:
        printer.print(payload)
    if args.feed > 0:
        printer.print_and_feed(args.feed)
    if not args.no_cut:
        printer.cut()
    logger.info("Printed %s (%d byte(s))", path.name, len(payload))
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = _settings_from_args(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    configure_logging(
        level=logging.DEBUG if args.debug else None,
        device=settings.device_label,
        json_logs=True if args.json_logs else None,
    )

    if args.command == "config":
        return _cmd_config(settings, args)

    payload = b""
    if args.command == "print":
        try:
            payload = Path(args.file).read_bytes()
        except OSError as e:
            print(f"Error: cannot read {args.file}: {e.strerror or e}", file=sys.stderr)
            return EXIT_USAGE

    try:
        with Printer.from_settings(settings) as printer:
            if args.command == "status":
                return _cmd_status(printer, args)
            return _cmd_print(printer, args, payload)
    except UnicodeDecodeError as e:
        print(f"Error: {args.file} is not valid UTF-8: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except ReceiptPrinterError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


__all__: List[str] = ["build_parser", "main"]
