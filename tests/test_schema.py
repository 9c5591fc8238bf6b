import io

import pytest

from rbmarshal.marshal import MarshalError, UnsupportedVersionError, dumps
from rbmarshal.schema import debug_dump_schema

STRING_HOGE = "0408492209686f6765063a064554"
INT_777 = "040869020903"
HASH_2 = (
    "04087b074922096e616d65063a0645544922097461726f063b0054"
    "492208616765063b0054691a"
)
POS_BIGNUM = bytes([0x04, 0x08, 0x6C, 0x2B, 0x07, 0x0B, 0x83, 0x22, 0x60])
NEG_BIGNUM = bytes(
    [0x04, 0x08, 0x6C, 0x2D, 0x09, 0xB9, 0xA3, 0x38, 0x97, 0x22, 0x26, 0x36, 0x00]
)


def dump(data: bytes) -> str:
    out = io.StringIO()
    debug_dump_schema(io.BytesIO(data), out)
    return out.getvalue()


def indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def test_nil():
    assert dump(dumps(None)) == "nil\n"


@pytest.mark.parametrize("value, text", [(True, "true"), (False, "false")])
def test_booleans(value, text):
    assert dump(dumps(value)) == text + "\n"


def test_fixnum():
    assert dump(bytes.fromhex(INT_777)) == "fixnum 777\n"


def test_fixnum_round_trip_values():
    for number in (0, 1, -5, 65537, -65537):
        assert dump(dumps(number)).split() == ["fixnum", str(number)]


def test_ivar_string_structure():
    lines = dump(bytes.fromhex(STRING_HOGE)).splitlines()
    assert lines[0] == "IVAR {"
    assert lines[-1] == "}"
    assert '    raw_string len=4 "hoge"' in lines
    assert all(indent_of(line) == 4 for line in lines[1:-1])


def test_raw_string_length_counts_bytes():
    text = "日本"
    lines = dump(dumps(text)).splitlines()
    raw = [line.strip() for line in lines if "raw_string" in line]
    assert raw == [f'raw_string len={len(text.encode())} "{text}"']


def test_symbol_link_out_of_range_falls_back_to_index():
    data = b"\x04\x08;" + bytes([5 + 5])
    assert dump(data) == 'symbol_link #5 -> "#5"\n'


def test_array_nesting():
    lines = dump(dumps(["a", "b"])).splitlines()
    assert lines[0] == "array size=2 ["
    assert lines[-1] == "]"
    assert sum(line.strip() == "IVAR {" for line in lines) == 2
    assert max(indent_of(line) for line in lines) == 8


def test_nested_containers_indentation():
    lines = dump(dumps({"a": [1]})).splitlines()
    fixnum_lines = [line for line in lines if line.strip() == "fixnum 1"]
    assert len(fixnum_lines) == 1
    assert indent_of(fixnum_lines[0]) == 8


@pytest.mark.parametrize(
    "data, expected", [(POS_BIGNUM, 1612874507), (NEG_BIGNUM, -15241578750190521)]
)
def test_bignum(data, expected):
    assert dump(data) == f"bignum {expected}\n"


def test_large_bignum_is_truncated():
    value = 10**300
    out = dump(dumps(value))
    assert out.startswith("bignum (")
    assert out.endswith("...)\n")
    assert str(value)[:200] in out


def test_regexp():
    out = dump(b"\x04\x08/" + bytes([3 + 5]) + b"abc\x00")
    assert out.startswith("regexp pattern=")
    assert '"abc"' in out
    assert out.rstrip().endswith("options=0")


def test_symbol_is_quoted_with_escapes():
    name = 'a"b'
    data = b"\x04\x08:" + bytes([len(name) + 5]) + name.encode()
    out = dump(data)
    assert out.startswith("symbol ")
    assert '\\"' in out


def test_object_link():
    data = b"\x04\x08@" + bytes([2 + 5])
    assert dump(data).split() == ["object_link", "#2"]


def test_unknown_byte():
    out = dump(b"\x04\x08z")
    assert out.startswith("unknown byte: 0x")
    assert out.strip().endswith(f"{ord('z'):02x}")


def test_class_block():
    data = b"\x04\x08c" + b"0"
    assert dump(data).splitlines() == ["class {", "    nil", "}"]


def test_unsupported_version():
    with pytest.raises(UnsupportedVersionError):
        dump(b"\x04\x09" + b"0")


def test_missing_header():
    with pytest.raises(MarshalError):
        dump(b"\x04")


def test_missing_value():
    with pytest.raises(MarshalError):
        dump(b"\x04\x08")


def test_truncated_array():
    with pytest.raises(MarshalError):
        dump(b"\x04\x08[" + bytes([2 + 5]) + b"0")