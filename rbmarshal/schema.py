"""Debug dump of the raw structure of a Ruby Marshal stream."""

from __future__ import annotations

from typing import BinaryIO, TextIO

from rbmarshal.marshal import (
    ARRAY_SIGN,
    BIGNUM_SIGN,
    CLASS_SIGN,
    FALSE_SIGN,
    FIXNUM_SIGN,
    HASH_SIGN,
    IVAR_SIGN,
    MAJOR_VERSION,
    MINOR_VERSION,
    MODULE_SIGN,
    NIL_SIGN,
    OBJECT_LINK_SIGN,
    OBJECT_SIGN,
    RAWSTRING_SIGN,
    REGEXP_SIGN,
    SYMBOL_LINK_SIGN,
    SYMBOL_SIGN,
    TRUE_SIGN,
    Decoder,
    MarshalError,
    UnsupportedVersionError,
)

_INDENT = "    "
_BIGNUM_DISPLAY_BITS = 200
_BIGNUM_DISPLAY_DIGITS = 200

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}


def _quote(text: str) -> str:
    """Return text as a double-quoted literal with non-printable characters escaped."""
    parts = ['"']
    for ch in text:
        code = ord(ch)
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif 0xDC80 <= code <= 0xDCFF:
            # an undecodable byte kept by surrogateescape
            parts.append(f"\\x{code - 0xDC00:02x}")
        elif ch.isprintable():
            parts.append(ch)
        elif code < 0x80:
            parts.append(f"\\x{code:02x}")
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


class _SchemaDumper:
    def __init__(self, decoder: Decoder, writer: TextIO) -> None:
        self._decoder = decoder
        self._writer = writer
        self._depth = 0

    def _line(self, text: str) -> None:
        self._writer.write(f"{_INDENT * self._depth}{text}\n")

    def _block(self, opening: str, closing: str, body) -> None:
        self._line(opening)
        self._depth += 1
        body()
        self._depth -= 1
        self._line(closing)

    def _pairs(self, count: int) -> None:
        for _ in range(count):
            self.dump_next()
            self.dump_next()

    def _with_ivars(self) -> None:
        self.dump_next()
        count = self._decoder._read_int()
        self._line(f"ivar_count = {count}")
        self._pairs(count)

    def _read_bytes(self) -> bytes:
        return self._decoder._read(self._decoder._read_int())

    def dump_next(self) -> None:
        d = self._decoder
        sign = d._read(1)

        if sign == NIL_SIGN:
            self._line("nil")
        elif sign == TRUE_SIGN:
            self._line("true")
        elif sign == FALSE_SIGN:
            self._line("false")
        elif sign == FIXNUM_SIGN:
            self._line(f"fixnum {d._read_int()}")
        elif sign == RAWSTRING_SIGN:
            raw = self._read_bytes()
            text = raw.decode("utf-8", "surrogateescape")
            self._line(f'raw_string len={len(raw)} "{text}"')
        elif sign == SYMBOL_SIGN:
            self._line(f"symbol {_quote(d._read_symbol())}")
        elif sign == SYMBOL_LINK_SIGN:
            index = d._read_int()
            symbols = d._symbols
            name = symbols[index] if 0 <= index < len(symbols) else f"#{index}"
            self._line(f"symbol_link #{index} -> {_quote(name)}")
        elif sign == OBJECT_LINK_SIGN:
            self._line(f"object_link #{d._read_int()}")
        elif sign == IVAR_SIGN:
            self._block("IVAR {", "}", self._with_ivars)
        elif sign == ARRAY_SIGN:
            size = d._read_int()

            def items() -> None:
                for _ in range(size):
                    self.dump_next()

            self._block(f"array size={size} [", "]", items)
        elif sign == OBJECT_SIGN:
            self._block("object {", "}", self._with_ivars)
        elif sign == HASH_SIGN:
            size = d._read_int()
            self._block(f"hash size={size} {{", "}", lambda: self._pairs(size))
        elif sign == BIGNUM_SIGN:
            value = d._read_bignum()
            if value.bit_length() > _BIGNUM_DISPLAY_BITS:
                self._line(f"bignum ({str(value)[:_BIGNUM_DISPLAY_DIGITS]}...)")
            else:
                self._line(f"bignum {value}")
        elif sign == REGEXP_SIGN:
            pattern = self._read_bytes().decode("utf-8", "surrogateescape")
            options = d._read_int()
            self._line(f"regexp pattern={_quote(pattern)} options={options}")
        elif sign == CLASS_SIGN:
            self._block("class {", "}", self.dump_next)
        elif sign == MODULE_SIGN:
            self._block("module {", "}", self.dump_next)
        else:
            self._line(f"unknown byte: 0x{sign[0]:02x}")


def debug_dump_schema(reader: BinaryIO, writer: TextIO) -> None:
    """Write an indented, line-per-token description of one marshalled value.

    Raises MarshalError when the header is missing or the data ends early,
    and UnsupportedVersionError for a version other than 4.0 to 4.8.
    """
    header = reader.read(2)
    if len(header) != 2:
        raise MarshalError("cannot read marshal version")
    major, minor = header
    if major != MAJOR_VERSION or minor > MINOR_VERSION:
        raise UnsupportedVersionError(f"unsupported marshal version {major}.{minor}")
    _SchemaDumper(Decoder(reader), writer).dump_next()