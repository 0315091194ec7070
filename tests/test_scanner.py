import io

import pytest

from c33.scanner import Location, Scanner


def test_next_returns_bytes_in_order_then_eof():
    scanner = Scanner("f.in", b"ab")
    assert [scanner.next(), scanner.next()] == list(b"ab")
    with pytest.raises(EOFError):
        scanner.next()


def test_empty_input_is_eof():
    with pytest.raises(EOFError):
        Scanner("f.in", b"").next()


def test_unread_steps_back():
    scanner = Scanner("f.in", b"xyz")
    scanner.next()
    scanner.next()
    scanner.unread(1)
    assert scanner.next() == b"y"[0]


def test_invalid_unread_is_ignored():
    scanner = Scanner("f.in", b"xyz")
    scanner.next()
    scanner.unread(5)
    scanner.unread(-1)
    assert scanner.next() == b"y"[0]


def test_initial_location():
    assert Scanner("f.in", b"abc").location() == Location("f.in", 1, 0)


def test_location_after_newline():
    scanner = Scanner("f.in", b"ab\ncd")
    for _ in range(4):
        scanner.next()
    loc = scanner.location()
    assert (loc.line, loc.column) == (2, 1)


def test_unread_all_restores_location():
    scanner = Scanner("f.in", b"a\nb\nc")
    start = scanner.location()
    for _ in range(5):
        scanner.next()
    assert scanner.location() != start
    scanner.unread(5)
    assert scanner.location() == start


def test_location_string():
    assert str(Location("main.in", 3, 7)) == "main.in:3:7"


@pytest.mark.parametrize("stream", [io.BytesIO(b"hi"), io.StringIO("hi")])
def test_from_stream(stream):
    scanner = Scanner.from_stream("s.in", stream)
    assert scanner.filename == "s.in"
    assert bytes([scanner.next(), scanner.next()]) == b"hi"