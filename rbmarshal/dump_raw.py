"""Command that prints the raw token structure of a Ruby Marshal file."""

from __future__ import annotations

import argparse
import sys

from rbmarshal.marshal import MarshalError
from rbmarshal.schema import debug_dump_schema


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dump-raw",
        description="Print the structure of a Ruby Marshal stream.",
    )
    parser.add_argument("file", nargs="?", help="input file (default: standard input)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Dump the structure of the file named in argv, or of standard input."""
    args = _parse_args(argv)
    try:
        if args.file:
            with open(args.file, "rb") as stream:
                debug_dump_schema(stream, sys.stdout)
        else:
            debug_dump_schema(sys.stdin.buffer, sys.stdout)
    except (OSError, MarshalError) as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())