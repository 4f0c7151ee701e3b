"""Bounds-checked big-endian reader over an in-memory byte buffer."""

from __future__ import annotations

import struct
from typing import Tuple, Union

from ._constants import (
    FMT_F32,
    FMT_F64,
    FMT_I16,
    FMT_I32,
    FMT_I64,
    FMT_I8,
    FMT_U8,
    STRING_ENCODING,
    STRING_ERRORS,
    WIDTHS,
)
from ._errors import ERR_LENGTH, ERR_TRUNCATED, NbtError

Buffer = Union[bytes, bytearray, memoryview]

_SCALARS = {fmt: struct.Struct(">" + fmt) for fmt in WIDTHS}


class Cursor:
    """Sequential reader with an explicit position.

    Every read checks that the remaining byte count covers the whole
    field before consuming anything, so a failed read leaves `pos` where
    it was.
    """

    __slots__ = ("data", "pos")

    def __init__(self, data: Buffer, pos: int = 0) -> None:
        self.data = bytes(data)
        self.pos = pos

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def _need(self, width: int, what: str) -> None:
        if width > self.remaining:
            raise NbtError(
                ERR_TRUNCATED,
                "truncated {}: need {} bytes, {} left".format(
                    what, width, self.remaining),
                offset=self.pos, expected=width, found=self.remaining,
            )

    def _scalar(self, fmt: str, what: str):
        s = _SCALARS[fmt]
        self._need(s.size, what)
        (val,) = s.unpack_from(self.data, self.pos)
        self.pos += s.size
        return val

    def read_u8(self) -> int:
        return self._scalar(FMT_U8, "u8")

    def read_i8(self) -> int:
        return self._scalar(FMT_I8, "i8")

    def read_i16(self) -> int:
        return self._scalar(FMT_I16, "i16")

    def read_i32(self) -> int:
        return self._scalar(FMT_I32, "i32")

    def read_i64(self) -> int:
        return self._scalar(FMT_I64, "i64")

    def read_f32(self) -> float:
        return self._scalar(FMT_F32, "f32")

    def read_f64(self) -> float:
        return self._scalar(FMT_F64, "f64")

    def read_type_id(self) -> int:
        """Raw kind byte.  Whether it names a real kind is the caller's call."""
        return self._scalar(FMT_U8, "tag kind")

    def read_raw_string(self) -> bytes:
        """i16 length followed by that many raw bytes."""
        start = self.pos
        n = self.read_i16()
        if n < 0:
            self.pos = start
            raise NbtError(ERR_LENGTH, "negative string length {}".format(n),
                           offset=start, found=n)
        if n > self.remaining:
            self.pos = start
            raise NbtError(
                ERR_TRUNCATED,
                "truncated string: need {} bytes, {} left".format(
                    n, len(self.data) - start - 2),
                offset=start, expected=n, found=len(self.data) - start - 2,
            )
        raw = self.data[self.pos:self.pos + n]
        self.pos += n
        return raw

    def read_string(self) -> str:
        return self.read_raw_string().decode(STRING_ENCODING, STRING_ERRORS)

    def read_array(self, fmt: str, count: int) -> Tuple:
        """`count` fixed-width elements in one unpack."""
        width = WIDTHS[fmt] * count
        self._need(width, "array payload")
        vals = struct.unpack_from(">{}{}".format(count, fmt), self.data, self.pos)
        self.pos += width
        return vals
