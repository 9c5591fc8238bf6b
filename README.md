# rbmarshal

Read and write Ruby `Marshal` data (format version 4.8) from Python, with
two small commands for inspecting marshal files.

## Decoding

```python
from rbmarshal.marshal import loads

value = loads(b"\x04\x08i\x06")   # -> 1
```

`rbmarshal.marshal.Decoder(stream).decode()` reads one value, header
included, from a binary stream; `loads(data)` does the same for `bytes`.

The decoder understands:

- `nil`, `true`, `false` → `None`, `True`, `False`
- fixnums and bignums → `int`
- raw strings and strings wrapped with instance variables (such as the
  encoding flag `E`) → `str`; the instance variables are read and dropped.
  Bytes that are not valid UTF-8 are kept as surrogate escapes.
- symbols and symbol links → `str`
- arrays → `list`, hashes → `dict`
- object links, resolved against the arrays, hashes, raw strings and bignums
  read so far

A header other than major version 4 with minor version 0 to 8 raises
`UnsupportedVersionError`; a missing header, data that ends early, a link
that points nowhere, an unhashable hash key, or an object, regexp, class or
module raises `MarshalError` (of which `UnsupportedVersionError` is a
subclass, and which is itself a `ValueError`). An unknown type byte decodes
to `None`.

## Encoding

```python
from rbmarshal.marshal import dumps, loads

data = dumps({"oasis": "disbanded"})
assert loads(data) == {"oasis": "disbanded"}
```

`rbmarshal.marshal.Encoder(stream).encode(value)` writes the header and one
value to a binary stream (and flushes it if it can); `dumps(value)` returns
the bytes. It writes:

- `None`, `True`, `False`
- `int`: a fixnum from -1073741824 to 1073741823, a bignum outside that range
- `str`: as Ruby writes a UTF-8 string, with the `E: true` instance variable;
  repeated `:E` symbols are written as symbol links
- `list` and `tuple` as arrays, `dict` as hashes

Any other type raises `TypeError`.

## Filling dataclasses

`map_to_struct(mapping, target)` copies values from a decoded hash into a
dataclass instance and returns it. Each field is looked up under its
`ruby` metadata key, or under its own name; `None` and missing values leave
the field alone. A nested hash fills a nested dataclass field, creating the
dataclass with no arguments when the field does not already hold one.

```python
from dataclasses import dataclass, field
from rbmarshal.marshal import loads, map_to_struct

@dataclass
class User:
    name: str = ""
    age: int = 0

@dataclass
class Profile:
    user: User = field(default_factory=User)
    job: str = field(default="", metadata={"ruby": "job"})

profile = map_to_struct(loads(data), Profile())
```

A `mapping` that is not a `dict`, or a `target` that is not a dataclass
instance, raises `TypeError`.

## Structure dump

`rbmarshal.schema.debug_dump_schema(reader, writer)` reads one value from a
binary stream and writes one indented line per element to a text stream,
including objects, regexps, classes and modules that the decoder rejects.
For the encoded `{"oasis": "disbanded"}` above it writes:

```
hash size=1 {
    IVAR {
        raw_string len=5 "oasis"
        ivar_count = 1
        symbol "E"
        true
    }
    IVAR {
        raw_string len=9 "disbanded"
        ivar_count = 1
        symbol_link #0 -> "E"
        true
    }
}
```

## Command line

Print the decoded value of a marshal file, or of standard input when no file
is given:

```
rbmarshal-dump-decoded data.bin
```

Print the structure of a marshal file, or of standard input, as above:

```
rbmarshal-dump-raw data.bin
```

Both exit with status 1 on an error. `rbmarshal-dump-decoded` prints
`Error unmarshaling Ruby data: ...` on standard output for undecodable data;
`rbmarshal-dump-raw` prints the error on standard error.

## What it does not do

- Ruby objects, regexps, classes and modules cannot be decoded into Python
  values; only the structure dump shows them.
- The encoder writes no symbols of its own (dict keys are written as
  strings), no object links and no shared references: a value that appears
  twice is written twice.
- Strings are always treated as UTF-8; other Ruby string encodings are not
  converted.