# jx

A JSON decoder that reads values one at a time, from a byte string or from a
binary stream. You ask for the value you expect (a string, a number, an array,
an object), and malformed input is reported with the offending byte and its
offset.

## Installation

```
pip install .
```

## Creating a decoder

All of these live in `jx.decoder`:

- `decode_bytes(data)` reads from a `bytes` value;
- `decode_str(text)` reads from a `str`, encoded as UTF-8;
- `decode(reader, buf_size=0)` reads from any object with a binary `read(n)`
  method, `buf_size` bytes at a time (512 when `buf_size` is 0 or less).

A decoder can be pointed at new input with `reset(reader)` or
`reset_bytes(data)`.

## Reading values

```python
from jx.decoder import decode_str

d = decode_str('{"id": 1, "tags": ["a", "b"], "price": 40.8}')

def field(d, key):
    if key == "id":
        print("id", d.big_int())
    elif key == "tags":
        d.arr(lambda d: print("tag", d.read_str()))
    elif key == "price":
        print("price", d.float64())
    else:
        d.skip()

d.obj(field)
```

The readers are:

- `read_str()` returns a `str`; `read_str_bytes()` returns the UTF-8 bytes;
  `str_append(buf)` returns `buf` followed by the string's bytes. Escapes,
  including `\uXXXX` and surrogate pairs, are decoded; a lone surrogate becomes
  U+FFFD.
- `read_bool()` and `read_null()`.
- `float64()` returns a `float`; `float32()` returns the value rounded to
  single precision. Out-of-range numbers raise an error.
- `big_int()` returns an `int` of any size; `big_float()` returns a
  `decimal.Decimal` with at least 64 digits of precision.
- `skip()` skips one value of any kind.
- `next_type()` peeks at the kind of the next value and returns a
  `jx.types.Type` (`STRING`, `NUMBER`, `NULL`, `BOOL`, `ARRAY`, `OBJECT`, or
  `INVALID` when there is nothing valid to read).

### Arrays and objects

- `arr(func)` calls `func(decoder)` for every element; with `None` it skips the
  array.
- `obj(func)` calls `func(decoder, key)` for every field with the key as `str`;
  `obj_bytes(func)` passes the key as `bytes`. With `None` the object is
  skipped.
- `elem()` moves to the next array element and tells whether there is one.

Nesting deeper than 10000 levels is refused.

### Iterators

```python
d = decode_str('[true, false, true]')
values = [d.read_bool() for _ in d.arr_iter()]

d = decode_str('{"a": 1, "b": 2}')
for key in d.obj_iter():       # key is bytes
    print(key, d.big_int())
```

`arr_iter()` yields the decoder for each element and `obj_iter()` yields each
key; the caller reads the value before asking for the next step. The object
iterator also keeps the last key in its `key` attribute.

### Raw values, numbers and capture

- `raw()` returns the next value exactly as written, as a `Raw` (a `bytes`
  subclass); `raw_append(buf)` prepends `buf`. `Raw.type()` tells what kind of
  value it holds and `str()` gives its text.
- `num()` reads a number, or a string holding a number, without converting it,
  and returns it as `Raw`; `num_append(buf)` prepends `buf`.
- `capture(func)` calls `func(decoder)` and then rewinds, so the same value can
  be read again. This works for streams as well as bytes.
- `validate()` checks that the input holds exactly one JSON value and nothing
  after it.
- `base64()` reads a standard base64 string into `bytes`, or returns `None` for
  `null`; `base64_append(buf)` returns `buf` followed by the data.

## Errors

Every decoding failure raises a subclass of `jx.errors.DecodeError`:

- `BadTokenError`: an unexpected byte, with `token` and `offset` attributes;
  its text reads like `unexpected byte 99 'c' at 10`;
- `UnexpectedEOFError`: the input ended inside a value (also an `EOFError`);
- `EndOfInput`: there is no value left to read;
- `MaxDepthError` and `NegativeDepthError`: nesting limits.

Errors raised deep inside a value carry context, which is prefixed to their
text, such as `callback`, `array` or `":" expected`.

```python
from jx.decoder import decode_str
from jx.errors import BadTokenError

try:
    decode_str("[1 2]").validate()
except BadTokenError as err:
    print(err.token, err.offset)   # 50 3
```

Errors raised by the underlying stream's `read` are passed on unchanged.

## What it does not do

The package only decodes. It has no JSON encoder or writer, and no function
that turns a whole document into Python lists and dicts in one call; values
are read one at a time with the methods above.

## Running the tests

```
pip install .[test]
pytest
```