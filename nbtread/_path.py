"""Path lookup into a decoded tree.

Paths are RFC 6901 JSON Pointers: "/Data/Player/Pos/0".  A token selects
a Compound entry by name, or a List/array element by decimal index.
The empty path "" is the tree itself.
"""

from __future__ import annotations

import re
from typing import Any, List

from ._errors import ERR_PATH, NbtError
from ._tags import CompoundTag, ListTag, Tag, _ArrayTag


# ── RFC 6901 pointer parsing ──────────────────────────────────

_BAD_ESCAPE = re.compile(r"~(?![01])")


def parse_path(path: str) -> List[str]:
    """Split a pointer into its reference tokens.

    "~1" is unescaped before "~0", so "~01" stays "~1".
    """
    if not path:
        return []
    if path[0] != "/":
        raise NbtError(ERR_PATH, "path must start with '/'", found=path)
    tokens = path[1:].split("/")
    for tok in tokens:
        if _BAD_ESCAPE.search(tok):
            raise NbtError(ERR_PATH, "bad ~ escape in token {!r}".format(tok),
                           found=path)
    return [tok.replace("~1", "/").replace("~0", "~") for tok in tokens]


def _index(tok: str, size: int, path: str) -> int:
    if not tok.isdigit() or (len(tok) > 1 and tok[0] == "0"):
        raise NbtError(ERR_PATH, "bad index {!r}".format(tok), found=path)
    i = int(tok)
    if i >= size:
        raise NbtError(ERR_PATH, "index {} out of range ({} elements)".format(
            i, size), expected=size, found=i)
    return i


def get_path(tree: Tag, path: str) -> Any:
    """Return the tag (or array element int) that `path` points at."""
    cur: Any = tree
    for tok in parse_path(path):
        if isinstance(cur, CompoundTag):
            if tok not in cur:
                raise NbtError(ERR_PATH, "no entry {!r}".format(tok), found=path)
            cur = cur[tok]
        elif isinstance(cur, (ListTag, _ArrayTag)):
            cur = cur[_index(tok, len(cur), path)]
        else:
            raise NbtError(ERR_PATH, "cannot descend into {}".format(
                type(cur).__name__), found=path)
    return cur
