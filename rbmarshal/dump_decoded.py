"""Command that decodes a Ruby Marshal file and prints the resulting values."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from rbmarshal.marshal import MarshalError, loads

_INDENT = "    "


def _render(value: Any, depth: int = 0) -> str:
    pad = _INDENT * (depth + 1)
    closing = _INDENT * depth + "}"
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return f"(bool) {'true' if value else 'false'}"
    if isinstance(value, int):
        return f"(int) {value}"
    if isinstance(value, str):
        return f"(str) (len={len(value)}) {json.dumps(value, ensure_ascii=False)}"
    if isinstance(value, list):
        lines = [f"(list) (len={len(value)}) {{"]
        lines.extend(f"{pad}{_render(item, depth + 1)}," for item in value)
        lines.append(closing)
        return "\n".join(lines)
    if isinstance(value, dict):
        lines = [f"(dict) (len={len(value)}) {{"]
        lines.extend(
            f"{pad}{_render(key, depth + 1)}: {_render(item, depth + 1)},"
            for key, item in value.items()
        )
        lines.append(closing)
        return "\n".join(lines)
    return f"({type(value).__name__}) {value!r}"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dump-decoded",
        description="Decode a Ruby Marshal file and print its values.",
    )
    parser.add_argument("file", nargs="?", help="input file (default: standard input)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Decode the file named in argv, or standard input, and print the value."""
    args = _parse_args(argv)
    try:
        data = Path(args.file).read_bytes() if args.file else sys.stdin.buffer.read()
    except OSError as exc:
        print(exc, file=sys.stderr)
        return 1
    try:
        value = loads(data)
    except MarshalError as exc:
        sys.stdout.write(f"Error unmarshaling Ruby data: {exc}")
        return 1
    print(_render(value))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())