import io

import pytest

from oraskit.lineio import read_line


@pytest.mark.parametrize(
    "data, want",
    [
        (b"", b""),
        (b"\n", b""),
        (b"\r", b""),
        (b"\r\n", b""),
        (b"foo", b"foo"),
        (b"foo\n", b"foo"),
        (b"foo\r", b"foo"),
        (b"foo\r\n", b"foo"),
        (b"foo\rbar", b"foo\rbar"),
        (b"foo\nbar", b"foo"),
        (b"foo\r\nbar", b"foo"),
    ],
)
def test_read_line(data, want):
    assert read_line(io.BytesIO(data)) == want


@pytest.mark.parametrize(
    "data, left",
    [
        (b"foo\nbar", b"bar"),
        (b"foo\r\nbar", b"bar"),
        (b"foo\n", b""),
        (b"foo", b""),
    ],
)
def test_read_line_consumes_only_the_line(data, left):
    reader = io.BytesIO(data)
    read_line(reader)
    assert reader.read() == left


def test_read_line_successive_lines():
    reader = io.BytesIO(b"first\r\nsecond\nthird")
    assert [read_line(reader) for _ in range(3)] == [b"first", b"second", b"third"]


def test_read_line_error_propagates():
    class FailingReader:
        def read(self, size=-1):
            raise OSError("mock error")

    with pytest.raises(OSError, match="mock error"):
        read_line(FailingReader())