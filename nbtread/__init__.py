"""nbtread: decoder for the NBT binary tag format.

Turns an already-decompressed NBT byte buffer into a tree of typed tags.

Quick start:
    >>> from nbtread import read_nbt, IntTag
    >>> tree = read_nbt(b"\\x0a\\x00\\x00\\x03\\x00\\x01x\\x00\\x00\\x00\\x2a\\x00")
    >>> tree[""]["x"]
    IntTag(value=42)

Decoding is all-or-nothing: read_nbt() raises NbtError on the first
problem, try_read_nbt() returns None instead.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

from ._constants import MAX_DEPTH, TagId
from ._cursor import Buffer, Cursor
from ._decoder import read_payload, read_root
from ._errors import (
    ERR_LENGTH,
    ERR_LIMIT_DEPTH,
    ERR_PATH,
    ERR_ROOT,
    ERR_TAG_KIND,
    ERR_TRAILING,
    ERR_TRUNCATED,
    NbtError,
)
from ._json_adapter import dumps_json, format_tree, tag_to_json_value
from ._path import get_path, parse_path
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
    to_python,
)

__version__ = "1.0.0"

__all__ = [
    # Public API functions
    "read_nbt",
    "try_read_nbt",
    "read_nbt_file",
    "read_payload",
    "get_path",
    "parse_path",
    "to_python",
    "dumps_json",
    "format_tree",
    "tag_to_json_value",
    "Cursor",
    # Value model
    "TagId",
    "Tag",
    "EndTag",
    "ByteTag",
    "ShortTag",
    "IntTag",
    "LongTag",
    "FloatTag",
    "DoubleTag",
    "StringTag",
    "ByteArrayTag",
    "IntArrayTag",
    "LongArrayTag",
    "ListTag",
    "CompoundTag",
    # Exception
    "NbtError",
    # Error codes
    "ERR_TRUNCATED",
    "ERR_TAG_KIND",
    "ERR_LENGTH",
    "ERR_LIMIT_DEPTH",
    "ERR_ROOT",
    "ERR_TRAILING",
    "ERR_PATH",
    "MAX_DEPTH",
]

logger = logging.getLogger(__name__)


def read_nbt(data: Buffer, *, max_depth: int = MAX_DEPTH,
             strict: bool = False) -> CompoundTag:
    """Decode an NBT document.

    Returns a Compound holding one entry: the root's name mapped to the
    root body.  Raises NbtError if the buffer is not a complete, valid
    document.
    """
    return read_root(data, max_depth=max_depth, strict=strict)


def try_read_nbt(data: Buffer, *, max_depth: int = MAX_DEPTH,
                 strict: bool = False) -> Optional[CompoundTag]:
    """Like read_nbt(), but None on failure instead of raising."""
    try:
        return read_root(data, max_depth=max_depth, strict=strict)
    except NbtError:
        return None


def read_nbt_file(path: Union[str, "os.PathLike[str]"], *,
                  max_depth: int = MAX_DEPTH,
                  strict: bool = False) -> CompoundTag:
    """Read an uncompressed NBT file and decode it.

    Compressed files (gzip/zlib) must be inflated by the caller first.
    """
    with open(path, "rb") as f:
        data = f.read()
    logger.debug("read %d bytes from %s", len(data), path)
    return read_root(data, max_depth=max_depth, strict=strict)
