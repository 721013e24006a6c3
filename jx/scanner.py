"""Low level JSON scanning over a byte buffer or a stream."""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional

from .errors import (
    BadTokenError,
    DecodeError,
    EndOfInput,
    MaxDepthError,
    NegativeDepthError,
    UnexpectedEOFError,
)
from .types import Type

DEFAULT_BUF = 512
MAX_DEPTH = 10000

_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_COLON = ord(":")
_COMMA = ord(",")
_MINUS = ord("-")
_PLUS = ord("+")
_DOT = ord(".")
_ZERO = ord("0")
_LBRACKET = ord("[")
_RBRACKET = ord("]")
_LBRACE = ord("{")
_RBRACE = ord("}")

_DIGITS = frozenset(b"0123456789")
_CLOSERS = frozenset(b",]} \t\n\r")
_EXP = frozenset(b"eE")
_HEX = {c: int(chr(c), 16) for c in b"0123456789abcdefABCDEF"}
_ESCAPES = {
    ord('"'): ord('"'),
    ord("\\"): ord("\\"),
    ord("/"): ord("/"),
    ord("b"): 0x08,
    ord("f"): 0x0C,
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
    ord("u"): ord("u"),
}
_VALUE_TYPES = {
    _QUOTE: Type.STRING,
    _MINUS: Type.NUMBER,
    **{d: Type.NUMBER for d in _DIGITS},
    ord("t"): Type.BOOL,
    ord("f"): Type.BOOL,
    ord("n"): Type.NULL,
    _LBRACKET: Type.ARRAY,
    _LBRACE: Type.OBJECT,
}

_NON_SPACE = re.compile(rb"[^ \t\n\r]")
_SPECIAL = re.compile(rb'["\\\x00-\x1f]')


@contextmanager
def _context(message: str) -> Iterator[None]:
    try:
        yield
    except DecodeError as err:
        err.wrap(message)
        raise


def _is_surrogate(r: int) -> bool:
    return 0xD800 <= r < 0xE000


def _append_rune(out: bytearray, r: int) -> None:
    if _is_surrogate(r) or r > 0x10FFFF:
        r = 0xFFFD
    out += chr(r).encode("utf-8")


def _find_invalid_token4(buf: bytes, expected: bytes, offset: int) -> BadTokenError:
    idx = next(i for i, (a, b) in enumerate(zip(buf, expected)) if a != b)
    return BadTokenError(buf[idx], offset + idx)


class Scanner:
    """Reads JSON tokens from bytes or from a binary stream."""

    def __init__(
        self,
        reader: Optional[BinaryIO] = None,
        buf_size: int = 0,
        data: Optional[bytes] = None,
    ) -> None:
        self._reader = reader
        self._buf_size = buf_size if buf_size > 0 else DEFAULT_BUF
        self._buf = bytes(data) if data is not None else b""
        self._head = 0
        self._tail = len(self._buf)
        self._stream_offset = 0
        self._depth = 0

    def reset(self, reader: BinaryIO) -> None:
        """Start reading from ``reader``."""
        self._reader = reader
        self._buf = b""
        self._head = self._tail = 0
        self._stream_offset = 0
        self._depth = 0

    def reset_bytes(self, data: bytes) -> None:
        """Start reading from ``data``."""
        self._reader = None
        self._buf = bytes(data)
        self._head = 0
        self._tail = len(self._buf)
        self._stream_offset = 0
        self._depth = 0

    # Buffer handling.

    def _offset(self) -> int:
        return self._stream_offset + self._head

    def _read(self) -> None:
        if self._reader is None:
            self._head = self._tail
            raise EndOfInput()
        chunk = self._reader.read(self._buf_size)
        if not chunk:
            raise EndOfInput()
        self._stream_offset += self._tail
        self._buf = bytes(chunk)
        self._head = 0
        self._tail = len(self._buf)

    def _read_at_least(self, minimum: int) -> None:
        if self._reader is None:
            self._head = self._tail
            raise UnexpectedEOFError()
        size = max(self._buf_size, minimum)
        self._buf_size = size
        data = bytearray()
        while len(data) < minimum:
            chunk = self._reader.read(size - len(data))
            if not chunk:
                raise UnexpectedEOFError()
            data += chunk
        self._stream_offset += self._tail
        self._buf = bytes(data)
        self._head = 0
        self._tail = len(self._buf)

    def _unread(self) -> None:
        self._head -= 1

    def _next(self) -> int:
        """Return the next non-space byte; EndOfInput if there is none."""
        while True:
            m = _NON_SPACE.search(self._buf, self._head, self._tail)
            if m is not None:
                self._head = m.end()
                return self._buf[m.start()]
            self._read()

    def _more(self) -> int:
        try:
            return self._next()
        except EndOfInput:
            raise UnexpectedEOFError() from None

    def _byte(self) -> int:
        if self._head == self._tail:
            try:
                self._read()
            except EndOfInput:
                raise UnexpectedEOFError() from None
        c = self._buf[self._head]
        self._head += 1
        return c

    def _consume(self, expected: int) -> None:
        while True:
            m = _NON_SPACE.search(self._buf, self._head, self._tail)
            if m is not None:
                got = self._buf[m.start()]
                if got != expected:
                    raise BadTokenError(got, self._stream_offset + m.start())
                self._head = m.end()
                return
            try:
                self._read()
            except EndOfInput:
                raise UnexpectedEOFError() from None

    def _skip_space(self) -> None:
        self._more()
        self._unread()

    def _read_exact4(self) -> bytes:
        avail = self._buf[self._head : self._tail]
        if len(avail) >= 4:
            self._head += 4
            return avail[:4]
        self._read_at_least(4 - len(avail))
        take = self._buf[self._head : self._head + 4 - len(avail)]
        self._head += len(take)
        return avail + take

    # Depth tracking.

    def _inc_depth(self) -> None:
        self._depth += 1
        if self._depth > MAX_DEPTH:
            raise MaxDepthError()

    def _dec_depth(self) -> None:
        self._depth -= 1
        if self._depth < 0:
            raise NegativeDepthError()

    # Public readers.

    def next_type(self) -> Type:
        """Type of the next value, without consuming it."""
        try:
            c = self._next()
        except (DecodeError, OSError):
            return Type.INVALID
        self._unread()
        return _VALUE_TYPES.get(c, Type.INVALID)

    def read_bool(self) -> bool:
        """Read ``true`` or ``false``."""
        self._skip_space()
        offset = self._offset()
        buf = self._read_exact4()
        if buf == b"true":
            return True
        if buf == b"fals":
            c = self._byte()
            if c != ord("e"):
                raise BadTokenError(c, offset + 4)
            return False
        if buf[0] == ord("t"):
            raise _find_invalid_token4(buf, b"true", offset)
        if buf[0] == ord("f"):
            raise _find_invalid_token4(buf, b"fals", offset)
        raise BadTokenError(buf[0], offset)

    def read_null(self) -> None:
        """Read ``null``."""
        self._skip_space()
        offset = self._offset()
        buf = self._read_exact4()
        if buf != b"null":
            raise _find_invalid_token4(buf, b"null", offset)

    def read_str_bytes(self) -> bytes:
        """Read a string, returning its UTF-8 bytes."""
        return self._read_string()[0]

    def read_str(self) -> str:
        """Read a string."""
        return self.read_str_bytes().decode("utf-8", "surrogateescape")

    def str_append(self, buf: Optional[bytes]) -> bytes:
        """Read a string and return ``buf`` followed by its bytes."""
        return bytes(buf or b"") + self.read_str_bytes()

    # Strings.

    def _read_string(self) -> tuple[bytes, bool]:
        """Read a string; the flag tells whether it was unescaped and whole in the buffer."""
        self._consume(_QUOTE)
        m = _SPECIAL.search(self._buf, self._head, self._tail)
        if m is None:
            return self._str_slow(bytearray()), False
        i = m.start()
        c = self._buf[i]
        if c == _QUOTE:
            text = self._buf[self._head : i]
            self._head = i + 1
            return text, True
        if c == _BACKSLASH:
            out = bytearray(self._buf[self._head : i])
            self._head = i
            return self._str_slow(out), False
        raise BadTokenError(c, self._stream_offset + i)

    def _str_slow(self, out: bytearray) -> bytes:
        while True:
            m = _SPECIAL.search(self._buf, self._head, self._tail)
            if m is None:
                out += self._buf[self._head : self._tail]
                try:
                    self._read()
                except EndOfInput:
                    raise UnexpectedEOFError() from None
                continue
            i = m.start()
            c = self._buf[i]
            out += self._buf[self._head : i]
            self._head = i + 1
            if c == _QUOTE:
                return bytes(out)
            if c != _BACKSLASH:
                raise BadTokenError(c, self._offset() - 1)
            escaped = self._byte()
            with _context("escape"):
                self._escaped_char(out, escaped)

    def _escaped_char(self, out: bytearray, c: int) -> None:
        val = _ESCAPES.get(c)
        if val is None:
            raise BadTokenError(c, self._offset() - 1).wrap("bad escape")
        if val != ord("u"):
            out.append(val)
            return
        with _context("read u4"):
            r1 = self._read_u4()
        if not _is_surrogate(r1):
            _append_rune(out, r1)
            return
        if self._byte() != _BACKSLASH:
            self._unread()
            _append_rune(out, r1)
            return
        c = self._byte()
        if c != ord("u"):
            _append_rune(out, r1)
            self._escaped_char(out, c)
            return
        r2 = self._read_u4()
        if 0xD800 <= r1 < 0xDC00 and 0xDC00 <= r2 < 0xE000:
            _append_rune(out, 0x10000 + ((r1 - 0xD800) << 10) + (r2 - 0xDC00))
        else:
            _append_rune(out, r1)
            _append_rune(out, r2)

    def _read_u4(self) -> int:
        offset = self._offset()
        value = 0
        for i, c in enumerate(self._read_exact4()):
            digit = _HEX.get(c)
            if digit is None:
                raise BadTokenError(c, offset + i)
            value = value * 16 + digit
        return value

    # Skipping.

    def skip(self) -> None:
        """Skip one value of any kind."""
        stack: list[Type] = []
        try:
            c: Optional[int] = self._next()
            while True:
                c = self._begin_value(c, stack)
                if c is None:
                    c = self._after_value(stack)
                    if c is None:
                        return
        except DecodeError as err:
            for kind in reversed(stack):
                err.wrap("array" if kind is Type.ARRAY else "object")
            raise

    def _begin_value(self, c: int, stack: list[Type]) -> Optional[int]:
        """Start a value at byte ``c``.

        Returns None when the value is complete, else the next byte to start.
        """
        if c == _LBRACKET:
            stack.append(Type.ARRAY)
            with _context("inc"):
                self._inc_depth()
            with _context('value or "]" expected'):
                c = self._more()
            if c == _RBRACKET:
                stack.pop()
                self._dec_depth()
                return None
            return c
        if c == _LBRACE:
            stack.append(Type.OBJECT)
            with _context("inc"):
                self._inc_depth()
            with _context('\'"\' or "}" expected'):
                c = self._more()
            if c == _RBRACE:
                stack.pop()
                self._dec_depth()
                return None
            if c != _QUOTE:
                raise BadTokenError(c, self._offset() - 1)
            self._skip_field_rest()
            return self._next()
        if c == _QUOTE:
            with _context("str"):
                self._skip_str()
        elif c == ord("n"):
            self._unread()
            self.read_null()
        elif c in (ord("t"), ord("f")):
            self._unread()
            self.read_bool()
        elif c == _MINUS or c in _DIGITS:
            self._unread()
            self._skip_number()
        else:
            raise BadTokenError(c, self._offset() - 1)
        return None

    def _skip_field_rest(self) -> None:
        with _context("read field name"):
            self._skip_str()
        with _context('":" expected'):
            self._consume(_COLON)

    def _after_value(self, stack: list[Type]) -> Optional[int]:
        while stack:
            kind = stack[-1]
            closer = _RBRACKET if kind is Type.ARRAY else _RBRACE
            with _context(f'"," or "{chr(closer)}" expected'):
                c = self._more()
            if c == _COMMA:
                if kind is Type.OBJECT:
                    with _context('\'"\' expected'):
                        self._consume(_QUOTE)
                    self._skip_field_rest()
                return self._next()
            if c != closer:
                raise BadTokenError(c, self._offset() - 1)
            stack.pop()
            self._dec_depth()
        return None

    def _skip_str(self) -> None:
        """Skip a string whose opening quote was consumed."""
        while True:
            m = _SPECIAL.search(self._buf, self._head, self._tail)
            if m is None:
                try:
                    self._read()
                except EndOfInput:
                    raise UnexpectedEOFError() from None
                continue
            i = m.start()
            c = self._buf[i]
            if c == _QUOTE:
                self._head = i + 1
                return
            if c != _BACKSLASH:
                raise BadTokenError(c, self._stream_offset + i)
            self._head = i + 1
            v = self._byte()
            if v == ord("u"):
                for _ in range(4):
                    h = self._byte()
                    if h not in _HEX:
                        raise BadTokenError(h, self._offset() - 1)
            elif v not in _ESCAPES:
                raise BadTokenError(v, self._offset() - 1)

    def _skip_number(self) -> None:
        """Skip a number; the buffer must hold its first byte."""
        c = self._buf[self._head]
        self._head += 1
        state = "int"
        if c == _MINUS:
            c = self._byte()
            if c not in _DIGITS:
                raise BadTokenError(c, self._offset() - 1)
        if c == _ZERO:
            if self._head == self._tail:
                try:
                    self._read()
                except EndOfInput:
                    return
            c = self._buf[self._head]
            if c in _CLOSERS:
                return
            if c == _DOT:
                state = "dot"
            elif c in _EXP:
                state = "exp"
            else:
                raise BadTokenError(c, self._offset())

        if state == "int":
            state = self._skip_int_part()
            if state is None:
                return
        if state == "dot":
            state = self._skip_fraction()
            if state is None:
                return
        self._skip_exponent()

    def _skip_int_part(self) -> Optional[str]:
        while True:
            for i, c in enumerate(self._buf[self._head : self._tail]):
                if c in _CLOSERS:
                    self._head += i
                    return None
                if c in _DIGITS:
                    continue
                if c == _DOT or c in _EXP:
                    self._head += i
                    return "dot" if c == _DOT else "exp"
                raise BadTokenError(c, self._offset() + i)
            try:
                self._read()
            except EndOfInput:
                self._head = self._tail
                return None

    def _skip_fraction(self) -> Optional[str]:
        self._head += 1
        last = _DOT
        while True:
            for i, c in enumerate(self._buf[self._head : self._tail]):
                if c in _CLOSERS:
                    self._head += i
                    if last == _DOT:
                        raise UnexpectedEOFError()
                    return None
                if c in _DIGITS:
                    last = c
                    continue
                if c in _EXP:
                    if last == _DOT:
                        raise BadTokenError(c, self._offset() + i)
                    self._head += i
                    return "exp"
                raise BadTokenError(c, self._offset() + i)
            try:
                self._read()
            except EndOfInput:
                self._head = self._tail
                if last == _DOT:
                    raise UnexpectedEOFError() from None
                return None

    def _skip_exponent(self) -> None:
        self._head += 1
        num_or_sign = self._byte()
        if num_or_sign not in _DIGITS:
            if num_or_sign not in (_MINUS, _PLUS):
                raise BadTokenError(num_or_sign, self._offset() - 1)
            num = self._byte()
            if num not in _DIGITS:
                raise BadTokenError(num, self._offset() - 1)
        while True:
            for i, c in enumerate(self._buf[self._head : self._tail]):
                if c in _CLOSERS:
                    self._head += i
                    return
                if c not in _DIGITS:
                    raise BadTokenError(c, self._offset() + i)
            try:
                self._read()
            except EndOfInput:
                self._head = self._tail
                return