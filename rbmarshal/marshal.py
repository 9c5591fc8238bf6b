"""Reading and writing data in the Ruby Marshal 4.8 format."""

from __future__ import annotations

import dataclasses
import inspect
import io
import re
from typing import Any, BinaryIO, Callable, get_args

MAJOR_VERSION = 4
MINOR_VERSION = 8

NIL_SIGN = b"0"
TRUE_SIGN = b"T"
FALSE_SIGN = b"F"
FIXNUM_SIGN = b"i"
RAWSTRING_SIGN = b'"'
SYMBOL_SIGN = b":"
SYMBOL_LINK_SIGN = b";"
OBJECT_SIGN = b"o"
OBJECT_LINK_SIGN = b"@"
ARRAY_SIGN = b"["
IVAR_SIGN = b"I"
HASH_SIGN = b"{"
BIGNUM_SIGN = b"l"
REGEXP_SIGN = b"/"
CLASS_SIGN = b"c"
MODULE_SIGN = b"m"

FIXNUM_MIN = -0x40000000
FIXNUM_MAX = 0x3FFFFFFF

_TEXT_ENCODING = "utf-8"
_TEXT_ERRORS = "surrogateescape"

_NAME_PATTERN = re.compile(r"[A-Za-z_][\w.]*")


class MarshalError(ValueError):
    """Raised when marshal data cannot be read."""


class UnsupportedVersionError(MarshalError):
    """Raised when the stream carries a marshal version that is not supported."""


class Decoder:
    """Reads Ruby Marshal values from a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._symbols: list[str] = []
        self._objects: list[Any] = []
        self._handlers: dict[bytes, Callable[[], Any]] = {
            NIL_SIGN: lambda: None,
            TRUE_SIGN: lambda: True,
            FALSE_SIGN: lambda: False,
            FIXNUM_SIGN: self._read_int,
            RAWSTRING_SIGN: self._read_raw_string,
            SYMBOL_SIGN: self._read_symbol,
            SYMBOL_LINK_SIGN: self._read_symbol_link,
            OBJECT_LINK_SIGN: self._read_object_link,
            IVAR_SIGN: self._read_ivar,
            ARRAY_SIGN: self._read_array,
            HASH_SIGN: self._read_hash,
            BIGNUM_SIGN: self._read_bignum,
            OBJECT_SIGN: self._unsupported("object"),
            REGEXP_SIGN: self._unsupported("regexp"),
            CLASS_SIGN: self._unsupported("class"),
            MODULE_SIGN: self._unsupported("module"),
        }

    def decode(self) -> Any:
        """Read one marshalled value, header included, and return it."""
        header = self._stream.read(2)
        if len(header) != 2:
            raise MarshalError("cannot decode major, minor version")
        major, minor = header
        if major != MAJOR_VERSION or minor > MINOR_VERSION:
            raise UnsupportedVersionError(f"unsupported marshal version {major}.{minor}")
        self._symbols = []
        self._objects = []
        return self._read_value()

    def _read(self, size: int) -> bytes:
        if size < 0:
            raise MarshalError(f"negative length {size}")
        data = self._stream.read(size)
        if len(data) != size:
            raise MarshalError("unexpected end of data")
        return data

    def _read_value(self) -> Any:
        handler = self._handlers.get(self._read(1))
        if handler is None:
            return None
        return handler()

    @staticmethod
    def _unsupported(kind: str) -> Callable[[], Any]:
        def fail() -> Any:
            raise MarshalError(f"{kind} not supported")

        return fail

    def _read_int(self) -> int:
        c = self._read(1)[0]
        if c > 127:
            c -= 256
        if c == 0:
            return 0
        if c > 5:
            return c - 5
        if c < -5:
            return c + 5
        if c > 0:
            return int.from_bytes(self._read(c), "little")
        size = -c
        return int.from_bytes(self._read(size), "little") - (1 << (8 * size))

    def _read_text(self) -> str:
        return self._read(self._read_int()).decode(_TEXT_ENCODING, _TEXT_ERRORS)

    def _read_raw_string(self) -> str:
        text = self._read_text()
        self._objects.append(text)
        return text

    def _read_symbol(self) -> str:
        symbol = self._read_text()
        self._symbols.append(symbol)
        return symbol

    def _read_symbol_link(self) -> str:
        index = self._read_int()
        if not 0 <= index < len(self._symbols):
            raise MarshalError(f"symbol link #{index} out of range")
        return self._symbols[index]

    def _read_object_link(self) -> Any:
        index = self._read_int()
        if not 0 <= index < len(self._objects):
            raise MarshalError(f"object link #{index} out of range")
        return self._objects[index]

    def _read_ivar(self) -> Any:
        value = self._read_value()
        for _ in range(self._read_int()):
            self._read_value()  # instance variable name
            self._read_value()  # instance variable value
        return value

    def _read_array(self) -> list[Any]:
        array: list[Any] = []
        self._objects.append(array)
        size = self._read_int()
        array.extend(self._read_value() for _ in range(size))
        return array

    def _read_hash(self) -> dict[Any, Any]:
        mapping: dict[Any, Any] = {}
        self._objects.append(mapping)
        for _ in range(self._read_int()):
            key = self._read_value()
            value = self._read_value()
            try:
                mapping[key] = value
            except TypeError as exc:
                raise MarshalError(f"unhashable hash key of type {type(key).__name__}") from exc
        return mapping

    def _read_bignum(self) -> int:
        sign = self._read(1)
        magnitude = int.from_bytes(self._read(self._read_int() * 2), "little")
        value = -magnitude if sign == b"-" else magnitude
        self._objects.append(value)
        return value


class Encoder:
    """Writes Python values to a binary stream in Ruby Marshal format."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._out = bytearray()
        self._symbols: dict[str, int] = {}

    def encode(self, value: Any) -> None:
        """Write the header and one value to the stream."""
        self._out = bytearray((MAJOR_VERSION, MINOR_VERSION))
        self._symbols = {}
        self._write_value(value)
        self._stream.write(bytes(self._out))
        flush = getattr(self._stream, "flush", None)
        if flush is not None:
            flush()

    def _write_value(self, value: Any) -> None:
        if value is None:
            self._out += NIL_SIGN
        elif isinstance(value, bool):
            self._out += TRUE_SIGN if value else FALSE_SIGN
        elif isinstance(value, int):
            if FIXNUM_MIN <= value <= FIXNUM_MAX:
                self._out += FIXNUM_SIGN
                self._write_int(value)
            else:
                self._write_bignum(value)
        elif isinstance(value, str):
            self._write_string(value)
        elif isinstance(value, (list, tuple)):
            self._out += ARRAY_SIGN
            self._write_int(len(value))
            for item in value:
                self._write_value(item)
        elif isinstance(value, dict):
            self._out += HASH_SIGN
            self._write_int(len(value))
            for key, item in value.items():
                self._write_value(key)
                self._write_value(item)
        else:
            raise TypeError(f"cannot marshal value of type {type(value).__name__}")

    def _write_int(self, number: int) -> None:
        if number == 0:
            self._out.append(0)
        elif 0 < number < 123:
            self._out.append(number + 5)
        elif -124 < number < 0:
            self._out.append((number - 5) & 0xFF)
        else:
            if number > 0:
                size = (number.bit_length() + 7) // 8
                self._out.append(size)
            else:
                size = ((~number).bit_length() + 7) // 8
                self._out.append(256 - size)
            self._out += (number & ((1 << (8 * size)) - 1)).to_bytes(size, "little")

    def _write_bignum(self, number: int) -> None:
        self._out += BIGNUM_SIGN
        self._out += b"-" if number < 0 else b"+"
        magnitude = abs(number)
        size = (magnitude.bit_length() + 7) // 8
        size += size % 2
        self._write_int(size // 2)
        self._out += magnitude.to_bytes(size, "little")

    def _write_raw(self, data: bytes) -> None:
        self._write_int(len(data))
        self._out += data

    def _write_string(self, text: str) -> None:
        # I " raw-string, one instance variable: :E => true
        self._out += IVAR_SIGN + RAWSTRING_SIGN
        self._write_raw(text.encode(_TEXT_ENCODING, _TEXT_ERRORS))
        self._write_int(1)
        self._write_symbol("E")
        self._out += TRUE_SIGN

    def _write_symbol(self, name: str) -> None:
        index = self._symbols.get(name)
        if index is not None:
            self._out += SYMBOL_LINK_SIGN
            self._write_int(index)
            return
        self._symbols[name] = len(self._symbols)
        self._out += SYMBOL_SIGN
        self._write_raw(name.encode(_TEXT_ENCODING, _TEXT_ERRORS))


def _is_dataclass_type(candidate: Any) -> bool:
    return isinstance(candidate, type) and dataclasses.is_dataclass(candidate)


def _lookup_name(owner: type, dotted: str) -> Any:
    """Resolve a dotted name from the namespace of the module defining ``owner``."""
    module = inspect.getmodule(owner)
    if module is None:
        return None
    found: Any = module
    for part in dotted.split("."):
        found = getattr(found, part, None)
        if found is None:
            return None
    return found


def _dataclass_type(owner: type, hint: Any) -> type | None:
    if isinstance(hint, str):
        for name in _NAME_PATTERN.findall(hint):
            candidate = _lookup_name(owner, name)
            if _is_dataclass_type(candidate):
                return candidate
        return None
    for candidate in (hint, *get_args(hint)):
        if _is_dataclass_type(candidate):
            return candidate
    return None


def map_to_struct(mapping: Any, target: Any) -> Any:
    """Fill the fields of a dataclass instance from a decoded hash.

    A field is looked up under its ``ruby`` metadata key, or its own name.
    Nested hashes fill nested dataclass fields, creating them when unset.
    Returns the target.
    """
    if not isinstance(mapping, dict):
        raise TypeError(f"expected a dict, got {type(mapping).__name__}")
    if not dataclasses.is_dataclass(target) or isinstance(target, type):
        raise TypeError(f"expected a dataclass instance, got {type(target).__name__}")
    owner = type(target)
    for field in dataclasses.fields(target):
        value = mapping.get(field.metadata.get("ruby", field.name))
        if value is None:
            continue
        if isinstance(value, dict):
            current = getattr(target, field.name, None)
            if dataclasses.is_dataclass(current) and not isinstance(current, type):
                map_to_struct(value, current)
                continue
            cls = _dataclass_type(owner, field.type)
            if cls is not None:
                setattr(target, field.name, map_to_struct(value, cls()))
                continue
        setattr(target, field.name, value)
    return target


def loads(data: bytes) -> Any:
    """Decode one marshalled value from bytes."""
    return Decoder(io.BytesIO(data)).decode()


def dumps(value: Any) -> bytes:
    """Encode one value, header included, to bytes."""
    buffer = io.BytesIO()
    Encoder(buffer).encode(value)
    return buffer.getvalue()