"""LC-3 VM Command Line Interface.

Run one or more assembled LC-3 images on the current terminal.

Usage:
    lc3vm 2048.obj
    lc3vm os.obj rogue.obj --verbose
"""

import argparse
import logging
import sys
from typing import Optional

from .console import TerminalConsole, raw_mode
from .cpu import CPU, PC_START
from .errors import LoadError, VMRuntimeError
from .loader import load_image_file
from .memory import Memory
from .runner import run


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_USAGE = 2
EXIT_RUNTIME_ERROR = 3
EXIT_INTERRUPTED = 254


def _address(text: str) -> int:
    """Parse an address given as decimal, 0x3000 or LC-3 style x3000."""
    value = text.strip()
    if value[:1] in ("x", "X"):
        value = "0" + value
    number = int(value, 0)
    if not 0 <= number <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"address out of range: {text}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lc3vm",
        description="LC-3 virtual machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a single image
    lc3vm 2048.obj

    # Load several images into one address space, later ones win on overlap
    lc3vm lib.obj main.obj
        """
    )
    parser.add_argument(
        "images",
        nargs="+",
        metavar="IMAGE",
        help="Path to an assembled image file (loaded in argument order)"
    )
    parser.add_argument(
        "--start",
        type=_address,
        default=PC_START,
        help="Start address for execution. Default: x3000"
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Stop after this many instructions. Default: unlimited"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log loader and runner details to stderr"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return EXIT_OK if e.code == 0 else EXIT_USAGE

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    memory = Memory()
    for path in args.images:
        try:
            load_image_file(memory, path)
        except LoadError:
            print(f"Failed to load image: {path}")
            return EXIT_LOAD_FAILED

    console = TerminalConsole()
    memory.console = console
    cpu = CPU(start_address=args.start)

    try:
        with raw_mode(console.fd):
            run(cpu, memory, console, max_steps=args.max_steps)
    except KeyboardInterrupt:
        print()
        return EXIT_INTERRUPTED
    except VMRuntimeError as e:
        logger.error("Execution stopped at x%04X: %s", e.addr, e.message)
        return EXIT_RUNTIME_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
