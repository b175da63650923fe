"""Reading a single line from a byte stream."""

from __future__ import annotations

from typing import BinaryIO


def read_line(reader: BinaryIO) -> bytes:
    """Read one line byte by byte, dropping the newline and a trailing carriage return.

    Reading stops at the first newline, which is consumed, or at end of stream.
    Errors from the reader propagate.
    """
    line = bytearray()
    while True:
        chunk = reader.read(1)
        if chunk is None:
            continue
        if not chunk or chunk == b"\n":
            break
        line += chunk
    return bytes(line).removesuffix(b"\r")