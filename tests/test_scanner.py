import io

import pytest

from jx.errors import (
    BadTokenError,
    DecodeError,
    EndOfInput,
    MaxDepthError,
    UnexpectedEOFError,
)
from jx.scanner import MAX_DEPTH, Scanner
from jx.types import Type


class OneByteReader:
    def __init__(self, data):
        self._io = io.BytesIO(data)

    def read(self, n=-1):
        return self._io.read(1 if n != 0 else 0)


class BrokenReaderError(OSError):
    pass


class FailingReader:
    def read(self, n=-1):
        raise BrokenReaderError("no progress")


class ChunkThenFail:
    def __init__(self, data):
        self._data = data

    def read(self, n=-1):
        if self._data is None:
            raise BrokenReaderError("no progress")
        data, self._data = self._data, None
        return data


def modes(data):
    if isinstance(data, str):
        data = data.encode("utf-8")
    return [
        Scanner(data=data),
        Scanner(reader=io.BytesIO(data), buf_size=512),
        Scanner(reader=OneByteReader(data), buf_size=512),
        Scanner(reader=io.BytesIO(data), buf_size=1),
    ]


NULL_CASES = [
    ("", False),
    ("nope", False),
    ("nul", False),
    ("nil", False),
    ("nul\x00", False),
    ("null", True),
]


@pytest.mark.parametrize("text, valid", NULL_CASES)
def test_read_null(text, valid):
    for s in modes(text):
        if valid:
            assert s.read_null() is None
            assert s.next_type() is Type.INVALID
        else:
            with pytest.raises(DecodeError):
                s.read_null()


BOOL_CASES = [
    ("true", True),
    ("false", False),
    (" true", True),
    ("\n\tfalse", False),
]


@pytest.mark.parametrize("text, expected", BOOL_CASES)
def test_read_bool_valid(text, expected):
    for s in modes(text):
        assert s.read_bool() is expected


@pytest.mark.parametrize("text", ["", "tru", "fals", "falsy", "trux", "t", "nope", "1"])
def test_read_bool_invalid(text):
    for s in modes(text):
        with pytest.raises(DecodeError):
            s.read_bool()


def test_read_bool_error_position():
    with pytest.raises(BadTokenError) as exc:
        Scanner(data=b"trux").read_bool()
    assert str(exc.value) == "unexpected byte 120 'x' at 3"
    with pytest.raises(BadTokenError) as exc:
        Scanner(data=b"falsy").read_bool()
    assert (exc.value.token, exc.value.offset) == (ord("y"), 4)


def test_reset_to_reader():
    s = Scanner(data=b"")
    s.reset(io.BytesIO(b"true"))
    assert s.read_bool() is True


def test_zero_buf_size_reader():
    assert Scanner(reader=io.BytesIO(b"true"), buf_size=0).read_bool() is True


def test_reset_bytes():
    s = Scanner(reader=io.BytesIO(b"1"))
    s.reset_bytes(b'"x"')
    assert s.read_str() == "x"


def test_next_type_does_not_consume():
    s = Scanner(data=b"  [1]")
    assert s.next_type() is Type.ARRAY
    assert s.next_type() is Type.ARRAY
    s.skip()
    assert s.next_type() is Type.INVALID


@pytest.mark.parametrize(
    "text, expected",
    [('"a"', Type.STRING), ("-1", Type.NUMBER), ("null", Type.NULL),
     ("false", Type.BOOL), ("{}", Type.OBJECT), ("x", Type.INVALID)],
)
def test_next_type(text, expected):
    assert Scanner(data=text.encode()).next_type() is expected


def test_next_on_empty_then_str():
    s = Scanner(data=b"")
    for _ in range(3):
        assert s.next_type() is Type.INVALID
    with pytest.raises(UnexpectedEOFError):
        s.read_str()


def test_consume_reader_error():
    with pytest.raises(BrokenReaderError):
        Scanner(reader=FailingReader(), buf_size=1).read_str()


def test_read_at_least_small_buffer():
    assert Scanner(reader=io.BytesIO(b"null"), buf_size=1).read_null() is None


SKIP_NESTED = [
    '[-0.12, "stream"]',
    '["hello", "stream"]',
    '[null , "stream"]',
    '[true , "stream"]',
    '[false , "stream"]',
    '[[1, [2, [3], 4]], "stream"]',
    '[ [ ], "stream"]',
    '[ {"a" : [{"stream": "c"}], "d": 102 }, "stream"]',
    '["foo", "bar", "baz"]',
]


@pytest.mark.parametrize("text", SKIP_NESTED)
def test_skip_then_read(text):
    for s in modes(text + ' "tail"'):
        s.skip()
        assert s.read_str() == "tail"


@pytest.mark.parametrize(
    "text",
    ["[1, 2", '{"a" 1}', "[1,]", "01", "-", "1.", "1e", "1.e5", '"abc',
     '{"a":1,}', "[1 2]", "}", '{"a":}', "-a", "1e+"],
)
def test_skip_invalid(text):
    for s in modes(text):
        with pytest.raises(DecodeError):
            s.skip()


def test_skip_error_context():
    with pytest.raises(BadTokenError) as exc:
        Scanner(data=b'{"a" 1}').skip()
    assert str(exc.value) == "object: \":\" expected: unexpected byte 49 '1' at 5"


def test_skip_empty_is_end_of_input():
    with pytest.raises(EndOfInput):
        Scanner(data=b"   ").skip()


@pytest.mark.parametrize("text", ["0", "120", "0.", "0.0e", "0.0e+1"])
def test_skip_number_reader_error(text):
    s = Scanner(reader=ChunkThenFail(text.encode()), buf_size=len(text))
    with pytest.raises(BrokenReaderError):
        s.skip()


def test_skip_object_depth():
    data = b'{"1":' * (MAX_DEPTH + 1)
    with pytest.raises(MaxDepthError):
        Scanner(data=data).skip()


def test_skip_array_depth():
    with pytest.raises(MaxDepthError):
        Scanner(data=b"[" * (MAX_DEPTH + 1)).skip()


def test_str_append():
    s = Scanner(data=b'"Hello"')
    data = s.str_append(b"")
    assert data == b"Hello"
    with pytest.raises(UnexpectedEOFError):
        s.str_append(data)
    assert Scanner(data=b'"b"').str_append(b"a") == b"ab"


BAD_STRINGS = [
    "",
    "null",
    '"',
    '"\\"',
    '"\\\\\\"',
    '"\n"',
    '"\\U0001f64f"',
    '"\\uD83D\\u00"',
] + [f'"{chr(i)}"' for i in range(32)]


@pytest.mark.parametrize("text", BAD_STRINGS)
def test_read_str_invalid(text):
    for s in modes(text):
        with pytest.raises(DecodeError):
            s.read_str()


GOOD_STRINGS = [
    ('""', ""),
    ('"a"', "a"),
    ('"Iñtërnâtiônàlizætiøn,💝🐹🌇⛔"', "Iñtërnâtiônàlizætiøn,💝🐹🌇⛔"),
    (r'"\uD83D"', "\ufffd"),
    (r'"\uD83D\\"', "\ufffd\\"),
    (r'"\uD83D\ub000"', "\ufffd\ub000"),
    (r'"\uD83D\ude04"', "😄"),
    (r'"\uDEADBEEF"', "\ufffdBEEF"),
    (r'"hel\"lo"', 'hel"lo'),
    (r'"hel\\\/lo"', "hel\\/lo"),
    (r'"hel\\blo"', "hel\\blo"),
    (r'"hel\\\blo"', "hel\\\blo"),
    (r'"hel\\nlo"', "hel\\nlo"),
    (r'"hel\\\nlo"', "hel\\\nlo"),
    (r'"hel\\tlo"', "hel\\tlo"),
    (r'"hel\\flo"', "hel\\flo"),
    (r'"hel\\\flo"', "hel\\\flo"),
    (r'"hel\\\rlo"', "hel\\\rlo"),
    (r'"hel\\\tlo"', "hel\\\tlo"),
    (r'"\u4e2d\u6587"', "中文"),
    (r'"\ud83d\udc4a"', "\U0001f44a"),
]


@pytest.mark.parametrize("text, expected", GOOD_STRINGS)
def test_read_str_valid(text, expected):
    for s in modes(text):
        assert s.read_str() == expected


@pytest.mark.parametrize("text, expected", GOOD_STRINGS)
def test_skip_string(text, expected):
    for s in modes(text + " 7"):
        s.skip()
        assert s.next_type() is Type.NUMBER


def test_read_str_bytes():
    assert Scanner(data=b'"\\u00e9"').read_str_bytes() == "é".encode()


def test_str_slow_reader_error():
    with pytest.raises(BrokenReaderError):
        Scanner(reader=ChunkThenFail(b'"ab'), buf_size=3).read_str()