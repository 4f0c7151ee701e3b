"""NBT decoder over the 13 tag kinds.

Every value on the wire is preceded (in a Compound entry or a List
header) by a one-byte kind code, and that code alone decides how the
following bytes are read.  Decoding is strictly bottom-up: each
container is finished before it is handed to its parent, and the first
error anywhere abandons everything built so far.

Depth accounting: the root compound body is depth 1, and each nested
List or Compound adds one.  Containers are tracked on an explicit stack,
so nesting costs no Python frames.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple, Union

from ._constants import (
    FMT_I32,
    FMT_I64,
    FMT_I8,
    MAX_DEPTH,
    MIN_PAYLOAD,
    TagId,
)
from ._cursor import Buffer, Cursor
from ._errors import (
    ERR_LENGTH,
    ERR_LIMIT_DEPTH,
    ERR_ROOT,
    ERR_TAG_KIND,
    ERR_TRAILING,
    ERR_TRUNCATED,
    NbtError,
)
from ._tags import (
    ByteArrayTag,
    ByteTag,
    CompoundTag,
    DoubleTag,
    EndTag,
    FloatTag,
    IntArrayTag,
    IntTag,
    ListTag,
    LongArrayTag,
    LongTag,
    ShortTag,
    StringTag,
    Tag,
)

logger = logging.getLogger(__name__)

Reader = Callable[[Cursor, int, int], Tag]


def _bad_kind(code: int, offset: int) -> NbtError:
    return NbtError(ERR_TAG_KIND, "unknown tag kind 0x{:02x}".format(code),
                    offset=offset, expected="0..12", found=code)


def _read_count(cur: Cursor, what: str) -> int:
    """i32 element count, rejected when negative."""
    start = cur.pos
    n = cur.read_i32()
    if n < 0:
        raise NbtError(ERR_LENGTH, "negative {} count {}".format(what, n),
                       offset=start, found=n)
    return n


def _check_depth(cur: Cursor, depth: int, max_depth: int) -> None:
    if depth > max_depth:
        raise NbtError(ERR_LIMIT_DEPTH,
                       "nesting depth exceeds {}".format(max_depth),
                       offset=cur.pos, expected=max_depth, found=depth)


# ── Scalars ───────────────────────────────────────────────────

def _read_end(cur: Cursor, depth: int, max_depth: int) -> EndTag:
    return EndTag()


def _read_byte(cur: Cursor, depth: int, max_depth: int) -> ByteTag:
    return ByteTag(cur.read_i8())


def _read_short(cur: Cursor, depth: int, max_depth: int) -> ShortTag:
    return ShortTag(cur.read_i16())


def _read_int(cur: Cursor, depth: int, max_depth: int) -> IntTag:
    return IntTag(cur.read_i32())


def _read_long(cur: Cursor, depth: int, max_depth: int) -> LongTag:
    return LongTag(cur.read_i64())


def _read_float(cur: Cursor, depth: int, max_depth: int) -> FloatTag:
    return FloatTag(cur.read_f32())


def _read_double(cur: Cursor, depth: int, max_depth: int) -> DoubleTag:
    return DoubleTag(cur.read_f64())


def _read_string(cur: Cursor, depth: int, max_depth: int) -> StringTag:
    return StringTag(cur.read_string())


# ── Arrays ────────────────────────────────────────────────────
# [count:i32][count × element].  read_array checks the whole payload
# fits before unpacking, so a huge count on a short buffer costs nothing.

def _read_byte_array(cur: Cursor, depth: int, max_depth: int) -> ByteArrayTag:
    n = _read_count(cur, "byte array")
    return ByteArrayTag(cur.read_array(FMT_I8, n))


def _read_int_array(cur: Cursor, depth: int, max_depth: int) -> IntArrayTag:
    n = _read_count(cur, "int array")
    return IntArrayTag(cur.read_array(FMT_I32, n))


def _read_long_array(cur: Cursor, depth: int, max_depth: int) -> LongArrayTag:
    n = _read_count(cur, "long array")
    return LongArrayTag(cur.read_array(FMT_I64, n))


# ── Containers ────────────────────────────────────────────────
# Lists and Compounds are decoded with an explicit stack of open
# containers; nesting is bounded by max_depth, not by the interpreter's
# recursion limit.

class _OpenList:
    __slots__ = ("kind", "left", "items")

    def __init__(self, kind: TagId, count: int) -> None:
        self.kind = kind
        self.left = count
        self.items: List[Tag] = []

    def next_kind(self, cur: Cursor) -> Optional[int]:
        if not self.left:
            return None
        self.left -= 1
        return self.kind

    def add(self, tag: Tag) -> None:
        self.items.append(tag)

    def close(self) -> ListTag:
        return ListTag(self.kind, tuple(self.items))


class _OpenCompound:
    __slots__ = ("entries", "name")

    def __init__(self) -> None:
        self.entries: List[Tuple[str, Tag]] = []
        self.name = ""

    def next_kind(self, cur: Cursor) -> Optional[int]:
        """Read the next entry header; None at the closing END byte."""
        kind_off = cur.pos
        code = cur.read_type_id()
        if code == TagId.END:
            return None
        if code not in _READERS:
            raise _bad_kind(code, kind_off)
        self.name = cur.read_string()
        return code

    def add(self, tag: Tag) -> None:
        self.entries.append((self.name, tag))

    def close(self) -> CompoundTag:
        return CompoundTag(self.entries)


def _open_list(cur: Cursor) -> _OpenList:
    """Read a List header: [element_kind:u8][count:i32]."""
    kind_off = cur.pos
    code = cur.read_type_id()
    if code not in _READERS:
        raise _bad_kind(code, kind_off)
    kind = TagId(code)

    count_off = cur.pos
    n = _read_count(cur, "list")
    if kind == TagId.END and n > 0:
        raise NbtError(ERR_LENGTH,
                       "list of END declares {} elements".format(n),
                       offset=count_off, expected=0, found=n)
    # Every element of a non-END kind takes at least MIN_PAYLOAD bytes.
    if n * MIN_PAYLOAD[kind] > cur.remaining:
        raise NbtError(ERR_TRUNCATED,
                       "list of {} {} cannot fit in {} bytes".format(
                           n, kind.name, cur.remaining),
                       offset=count_off, found=cur.remaining)
    return _OpenList(kind, n)


def _open(cur: Cursor, kind: int, depth: int, max_depth: int):
    _check_depth(cur, depth, max_depth)
    if kind == TagId.LIST:
        return _open_list(cur)
    return _OpenCompound()


def _read_container(cur: Cursor, kind: int, depth: int,
                    max_depth: int) -> Union[ListTag, CompoundTag]:
    """Decode a List or Compound payload starting at `depth`."""
    stack: List[Union[_OpenList, _OpenCompound]] = []
    top = _open(cur, kind, depth, max_depth)
    while True:
        child = top.next_kind(cur)
        if child is None:
            done = top.close()
            if not stack:
                return done
            top = stack.pop()
            top.add(done)
        elif child == TagId.LIST or child == TagId.COMPOUND:
            stack.append(top)
            top = _open(cur, child, depth + len(stack), max_depth)
        else:
            top.add(_READERS[child](cur, depth, max_depth))


def _read_list(cur: Cursor, depth: int, max_depth: int) -> ListTag:
    """[element_kind:u8][count:i32][count × payload]."""
    return _read_container(cur, TagId.LIST, depth, max_depth)


def _read_compound(cur: Cursor, depth: int, max_depth: int) -> CompoundTag:
    """Named entries up to an END byte: [kind:u8][name][payload]..., 0x00."""
    return _read_container(cur, TagId.COMPOUND, depth, max_depth)


_READERS: Dict[int, Reader] = {
    TagId.END: _read_end,
    TagId.BYTE: _read_byte,
    TagId.SHORT: _read_short,
    TagId.INT: _read_int,
    TagId.LONG: _read_long,
    TagId.FLOAT: _read_float,
    TagId.DOUBLE: _read_double,
    TagId.BYTE_ARRAY: _read_byte_array,
    TagId.STRING: _read_string,
    TagId.LIST: _read_list,
    TagId.COMPOUND: _read_compound,
    TagId.INT_ARRAY: _read_int_array,
    TagId.LONG_ARRAY: _read_long_array,
}


# ── Public helpers ────────────────────────────────────────────

def read_payload(cur: Cursor, kind: int, depth: int = 1,
                 max_depth: int = MAX_DEPTH) -> Tag:
    """Decode one payload of `kind` at the cursor (no kind byte, no name)."""
    reader = _READERS.get(kind)
    if reader is None:
        raise _bad_kind(kind, cur.pos)
    return reader(cur, depth, max_depth)


def read_root(data: Buffer, *, max_depth: int = MAX_DEPTH,
              strict: bool = False) -> CompoundTag:
    """Decode a complete NBT document.

    The buffer must start with a Compound kind byte and a name.  The
    result is a synthetic Compound with that single name mapped to the
    decoded root body.  Trailing bytes after the root's END are ignored
    unless `strict` is set.
    """
    if max_depth < 1:
        raise ValueError("max_depth must be at least 1")
    cur = Cursor(data)
    try:
        code = cur.read_type_id()
        if code != TagId.COMPOUND:
            raise NbtError(ERR_ROOT,
                           "root must be a compound, got kind 0x{:02x}".format(code),
                           offset=0, expected=int(TagId.COMPOUND), found=code)
        name = cur.read_string()
        body = _read_compound(cur, 1, max_depth)
        if strict and not cur.at_end():
            raise NbtError(ERR_TRAILING,
                           "{} bytes after root compound".format(cur.remaining),
                           offset=cur.pos, found=cur.remaining)
    except NbtError as e:
        logger.debug("decode failed: [%s] %s", e.code, e)
        raise
    logger.debug("decoded root %r (%d entries, %d bytes)",
                 name, len(body), cur.pos)
    return CompoundTag([(name, body)])
