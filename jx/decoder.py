"""High level JSON decoding: numbers, raw values, containers and iterators."""

from __future__ import annotations

import base64 as _b64
import binascii
import decimal
import io
import math
import struct
from typing import BinaryIO, Callable, Optional

from .errors import BadTokenError, DecodeError, EndOfInput
from .scanner import Scanner, _context
from .types import Type

_NUMBER_CHARS = frozenset(b"0123456789.eE+-")
_NUMBER_END = frozenset(b",]} \t\n")
_DIGITS = frozenset(b"0123456789")


class Raw(bytes):
    """A raw JSON value."""

    def type(self) -> Type:
        """Type of the raw value."""
        return Scanner(data=self).next_type()

    def __str__(self) -> str:
        return self.decode("utf-8", "surrogateescape")


class _RawReader:
    """Reader that records every chunk read through it."""

    def __init__(self, orig: BinaryIO, initial: bytes) -> None:
        self.orig = orig
        self.buf = bytearray(initial)

    def read(self, n: int = -1) -> bytes:
        chunk = self.orig.read(n)
        if chunk:
            self.buf += chunk
        return chunk


class _TeeReader:
    def __init__(self, src: BinaryIO, sink: io.BytesIO) -> None:
        self.src = src
        self.sink = sink

    def read(self, n: int = -1) -> bytes:
        chunk = self.src.read(n)
        if chunk:
            self.sink.write(chunk)
        return chunk


class _MultiReader:
    def __init__(self, *readers: BinaryIO) -> None:
        self.readers = list(readers)

    def read(self, n: int = -1) -> bytes:
        while self.readers:
            chunk = self.readers[0].read(n)
            if chunk:
                return chunk
            self.readers.pop(0)
        return b""


def _validate_float(text: bytes, offset: int) -> None:
    if not text:
        raise DecodeError("empty")
    c = text[0]
    if c in b".+eE":
        raise BadTokenError(c, offset).wrap(f"leading {chr(c)!r}")
    if c == ord("-"):
        raise BadTokenError(c, offset).wrap("double minus")
    if c == ord("0") and len(text) >= 2 and text[1] not in b"eE.":
        raise BadTokenError(text[1], offset + 1).wrap("leading zero")
    dot = text.find(b".")
    if dot != -1:
        if dot == len(text) - 1:
            raise DecodeError("dot as last char")
        after = text[dot + 1]
        if after not in _DIGITS:
            raise BadTokenError(after, offset + dot + 1).wrap("no digit after dot")


class Decoder(Scanner):
    """Decodes JSON from bytes or from a binary stream."""

    # Numbers.

    def _number(self) -> bytes:
        start = self._head
        offset = self._offset()
        for i, c in enumerate(self._buf[self._head : self._tail]):
            if c in _NUMBER_END:
                self._head += i
                return self._buf[start : self._head]
            if c not in _NUMBER_CHARS:
                raise BadTokenError(c, offset + i)
        self._head = self._tail
        return self._buf[start : self._tail]

    def _number_append(self, out: bytes = b"") -> bytes:
        data = bytearray(out)
        while True:
            data += self._number()
            if self._head != self._tail:
                return bytes(data)
            try:
                self._read()
            except EndOfInput:
                return bytes(data)

    def _float(self) -> float:
        c = self._more()
        negative = c == ord("-")
        if not negative:
            self._unread()
        offset = self._offset()
        if self._head < self._tail:
            first = self._buf[self._head]
            if first not in _NUMBER_CHARS:
                raise BadTokenError(first, offset)
        with _context("number"):
            text = self._number_append()
        _validate_float(text, offset)
        try:
            value = float(text)
        except ValueError:
            raise DecodeError(f"invalid syntax {text!r}") from None
        if math.isinf(value):
            raise DecodeError(f"value out of range {text!r}")
        return -value if negative else value

    def float64(self) -> float:
        """Read a double precision number."""
        return self._float()

    def float32(self) -> float:
        """Read a single precision number."""
        value = self._float()
        try:
            return struct.unpack("f", struct.pack("f", value))[0]
        except OverflowError:
            raise DecodeError("value out of range") from None

    def big_float(self) -> decimal.Decimal:
        """Read a number with arbitrary precision."""
        with _context("number"):
            text = self._number_append()
        ctx = decimal.Context(prec=max(64, len(text)), rounding=decimal.ROUND_DOWN)
        try:
            return ctx.create_decimal(text.decode("ascii"))
        except decimal.InvalidOperation:
            raise DecodeError("invalid").wrap("float") from None

    def big_int(self) -> int:
        """Read an integer of any size."""
        with _context("number"):
            text = self._number_append()
        try:
            return int(text)
        except ValueError:
            raise DecodeError("invalid") from None

    def num(self) -> Raw:
        """Read a number, or a string holding a number."""
        return self._num(b"", False)

    def num_append(self, buf: Optional[bytes]) -> Raw:
        """Read a number and return ``buf`` followed by it."""
        return self._num(buf or b"", True)

    def _num(self, buf: bytes, force_append: bool) -> Raw:
        kind = self.next_type()
        if kind is Type.STRING:
            offset = self._offset()
            start = self._head
            with _context("str"):
                text, whole = self._read_string()
            check = Decoder(data=text)
            c = check._next()
            if c == ord("-") or c in _DIGITS:
                check._unread()
                with _context("skip number"):
                    check._skip_number()
            else:
                raise BadTokenError(c, offset)
            if not whole or force_append:
                return Raw(bytes(buf) + b'"' + text + b'"')
            return Raw(self._buf[start : self._head])
        if kind is Type.NUMBER:
            if force_append:
                return self.raw_append(buf)
            return self.raw()
        raise DecodeError(f"unexpected {kind}")

    # Raw values.

    def raw(self) -> Raw:
        """Skip a value and return its raw text."""
        start = self._head
        orig = self._reader
        if orig is None:
            with _context("skip"):
                self.skip()
            return Raw(self._buf[start : self._head])
        rr = _RawReader(orig, self._buf[start : self._tail])
        self._reader = rr
        try:
            with _context("skip"):
                self.skip()
        finally:
            self._reader = orig
        unread = self._tail - self._head
        return Raw(bytes(rr.buf[: len(rr.buf) - unread]))

    def raw_append(self, buf: Optional[bytes]) -> Raw:
        """Skip a value and return ``buf`` followed by its raw text."""
        return Raw(bytes(buf or b"") + self.raw())

    def capture(self, func: Optional[Callable[["Decoder"], object]]) -> None:
        """Call ``func`` and then roll back to the state before the call."""
        if func is None:
            return
        state = (self._buf, self._head, self._tail, self._depth, self._stream_offset)
        orig = self._reader
        sink = io.BytesIO()
        if orig is not None:
            self._reader = _TeeReader(orig, sink)
        try:
            func(self)
        finally:
            self._buf, self._head, self._tail, self._depth, self._stream_offset = state
            if orig is not None:
                self._reader = _MultiReader(io.BytesIO(sink.getvalue()), orig)

    def validate(self) -> None:
        """Consume the input, checking that it is one JSON value."""
        with _context("consume"):
            self.skip()
        try:
            self.skip()
        except EndOfInput:
            return
        except DecodeError as err:
            raise err.wrap("unexpected trialing data")

    # Base64.

    def base64(self) -> Optional[bytes]:
        """Read standard base64 data from a string; None for null."""
        if self.next_type() is Type.NULL:
            with _context("read null"):
                self.read_null()
            return None
        return self.base64_append(b"")

    def base64_append(self, buf: Optional[bytes]) -> bytes:
        """Read base64 data and return ``buf`` followed by it."""
        prefix = bytes(buf or b"")
        if self.next_type() is Type.NULL:
            with _context("read null"):
                self.read_null()
            return prefix
        with _context("bytes"):
            text = self.read_str_bytes()
        try:
            return prefix + _b64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as err:
            raise DecodeError(str(err)).wrap("decode") from None

    # Arrays.

    def elem(self) -> bool:
        """Move to the next array element; tell whether there is one."""
        c = self._next()
        if c == ord("["):
            c = self._more()
            if c != ord("]"):
                self._unread()
                return True
            return False
        if c == ord("]"):
            return False
        if c == ord(","):
            return True
        raise BadTokenError(c, self._offset()).wrap('"[", "," or "]" expected')

    def arr(self, func: Optional[Callable[["Decoder"], object]]) -> None:
        """Read an array, calling ``func`` on every element."""
        with _context('"[" expected'):
            self._consume(ord("["))
        if func is None:
            self._unread()
            self.skip()
            return
        self._inc_depth()
        with _context('value or "]" expected'):
            c = self._more()
        if c == ord("]"):
            self._dec_depth()
            return
        self._unread()
        with _context("callback"):
            func(self)
        with _context('"," or "]" expected'):
            c = self._more()
        while c == ord(","):
            self._next()
            self._unread()
            with _context("callback"):
                func(self)
            c = self._next()
        if c != ord("]"):
            raise BadTokenError(c, self._offset() - 1).wrap('"]" expected')
        self._dec_depth()

    def arr_iter(self) -> "ArrIter":
        """Iterate over array elements; each step yields this decoder."""
        with _context('"[" expected'):
            self._consume(ord("["))
        self._inc_depth()
        self._more()
        self._unread()
        return ArrIter(self)

    # Objects.

    def obj_bytes(self, func: Optional[Callable[["Decoder", bytes], object]]) -> None:
        """Read an object, calling ``func`` with every key as bytes."""
        with _context('"{" expected'):
            self._consume(ord("{"))
        if func is None:
            self._unread()
            self.skip()
            return
        self._inc_depth()
        with _context('\'"\' or "}" expected'):
            c = self._more()
        if c == ord("}"):
            self._dec_depth()
            return
        self._unread()
        self._field(func)
        with _context('"," or "}" expected'):
            c = self._more()
        while c == ord(","):
            self._field(func)
            c = self._more()
        if c != ord("}"):
            raise BadTokenError(c, self._offset() - 1).wrap('"}" expected')
        self._dec_depth()

    def _field(self, func: Callable[["Decoder", bytes], object]) -> None:
        with _context("field name"):
            key = self.read_str_bytes()
        with _context('":" expected'):
            self._consume(ord(":"))
        self._more()
        self._unread()
        with _context("callback"):
            func(self, key)

    def obj(self, func: Optional[Callable[["Decoder", str], object]]) -> None:
        """Read an object, calling ``func`` with every key."""
        if func is None:
            self.obj_bytes(None)
            return
        self.obj_bytes(lambda d, key: func(d, key.decode("utf-8", "surrogateescape")))

    def obj_iter(self) -> "ObjIter":
        """Iterate over object fields; each step yields the key."""
        with _context('"{" expected'):
            self._consume(ord("{"))
        self._inc_depth()
        self._more()
        self._unread()
        return ObjIter(self)


class ArrIter:
    """Iterator over array elements; the caller reads each element."""

    def __init__(self, decoder: Decoder) -> None:
        self._d = decoder
        self._closed = False
        self._comma = False

    def __iter__(self) -> "ArrIter":
        return self

    def __next__(self) -> Decoder:
        if self._closed:
            raise StopIteration
        d = self._d
        try:
            c = d._more()
            if c == ord("]"):
                self._closed = True
                d._dec_depth()
                raise StopIteration
            if self._comma:
                if c != ord(","):
                    raise BadTokenError(c, d._offset() - 1).wrap('"," expected')
            else:
                d._unread()
        except DecodeError:
            self._closed = True
            raise
        self._comma = True
        return d


class ObjIter:
    """Iterator over object keys; the caller reads each value."""

    def __init__(self, decoder: Decoder) -> None:
        self._d = decoder
        self._closed = False
        self._comma = False
        self.key: Optional[bytes] = None

    def __iter__(self) -> "ObjIter":
        return self

    def __next__(self) -> bytes:
        if self._closed:
            raise StopIteration
        d = self._d
        try:
            c = d._more()
            if c == ord("}"):
                self._closed = True
                d._dec_depth()
                raise StopIteration
            if self._comma:
                if c != ord(","):
                    raise BadTokenError(c, d._offset() - 1).wrap('"," expected')
            else:
                d._unread()
            with _context("field name"):
                key = d.read_str_bytes()
            with _context('":" expected'):
                d._consume(ord(":"))
            try:
                d._more()
            except DecodeError:
                raise BadTokenError(c, d._offset() - 1).wrap(
                    '"," or "}" expected'
                ) from None
            d._unread()
        except DecodeError:
            self._closed = True
            raise
        self._comma = True
        self.key = key
        return key


def decode(reader: BinaryIO, buf_size: int = 0) -> Decoder:
    """Create a decoder reading from a binary stream."""
    return Decoder(reader=reader, buf_size=buf_size)


def decode_bytes(data: bytes) -> Decoder:
    """Create a decoder reading from bytes."""
    return Decoder(data=data)


def decode_str(text: str) -> Decoder:
    """Create a decoder reading from a string."""
    return Decoder(data=text.encode("utf-8"))