"""Kinds of JSON values."""

from __future__ import annotations

import enum


class Type(enum.IntEnum):
    """Type of a JSON value."""

    INVALID = 0
    STRING = 1
    NUMBER = 2
    NULL = 3
    BOOL = 4
    ARRAY = 5
    OBJECT = 6

    def __str__(self) -> str:
        return self.name.lower()