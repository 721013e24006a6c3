"""Errors raised while decoding JSON."""

from __future__ import annotations


def _quote_byte(c: int) -> str:
    """Quote a byte value as a character literal in single quotes."""
    specials = {
        0x07: "\\a",
        0x08: "\\b",
        0x0C: "\\f",
        0x0A: "\\n",
        0x0D: "\\r",
        0x09: "\\t",
        0x0B: "\\v",
        0x5C: "\\\\",
        0x27: "\\'",
    }
    if c in specials:
        body = specials[c]
    elif chr(c).isprintable():
        body = chr(c)
    elif c < 0x80:
        body = f"\\x{c:02x}"
    else:
        body = f"\\u{c:04x}"
    return f"'{body}'"


class DecodeError(Exception):
    """Base class of all decoding errors.

    Errors may be wrapped with context messages, which are prefixed to the
    error text while the error keeps its class.
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.context: list[str] = []

    def wrap(self, message: str) -> DecodeError:
        """Prefix the error text with ``message`` and return the error."""
        self.context.insert(0, message)
        return self

    def _with_context(self, text: str) -> str:
        return ": ".join([*self.context, text])

    def __str__(self) -> str:
        return self._with_context(super().__str__())


class BadTokenError(DecodeError):
    """An unexpected byte was met at the given offset of the input."""

    def __init__(self, token: int, offset: int) -> None:
        super().__init__()
        self.token = token
        self.offset = offset

    def __str__(self) -> str:
        return self._with_context(
            f"unexpected byte {self.token} {_quote_byte(self.token)} at {self.offset}"
        )


class EndOfInput(DecodeError):
    """The input ended where no more values were required."""

    def __init__(self, message: str = "EOF") -> None:
        super().__init__(message)


class UnexpectedEOFError(DecodeError, EOFError):
    """The input ended in the middle of a value."""

    def __init__(self, message: str = "unexpected EOF") -> None:
        super().__init__(message)


class MaxDepthError(DecodeError):
    """Nesting of arrays and objects is deeper than allowed."""

    def __init__(self, message: str = "depth: maximum") -> None:
        super().__init__(message)


class NegativeDepthError(DecodeError):
    """More containers were closed than opened."""

    def __init__(self, message: str = "depth: negative") -> None:
        super().__init__(message)