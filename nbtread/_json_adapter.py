"""Export a decoded tree as JSON or as an indented text listing.

Two JSON shapes are offered:

    plain   Compound → object, List/arrays → array, scalars → number or
            string.  Tag kinds are lost (Byte 1 and Long 1 both become 1).
    typed   every node becomes {"kind": "INT", "value": ...}; Lists also
            carry "element_kind" so empty lists keep their declared kind.

Floats that are NaN or infinite are written as the strings "NaN",
"Infinity" and "-Infinity" so the output stays strict JSON.  Strings that
held invalid UTF-8 carry lone surrogates, which json.dumps escapes.
"""

from __future__ import annotations

import json
import math
from typing import Any, List, Optional

from ._tags import (
    CompoundTag,
    DoubleTag,
    EndTag,
    FloatTag,
    ListTag,
    StringTag,
    Tag,
    _ArrayTag,
    _rebuild,
)


def _float_value(x: float) -> Any:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    return x


def _json_leaf(tag: Tag) -> Any:
    if isinstance(tag, _ArrayTag):
        return list(tag.values)
    if isinstance(tag, EndTag):
        return None
    if isinstance(tag, (FloatTag, DoubleTag)):
        return _float_value(tag.value)
    return tag.value


def _typed_node(tag: Tag, body: Any) -> Any:
    out = {"kind": tag.kind.name, "value": body}
    if isinstance(tag, ListTag):
        out["element_kind"] = tag.element_kind.name
    return out


def tag_to_json_value(tag: Tag, typed: bool = False) -> Any:
    """Convert a tag tree to json.dumps-ready values."""
    return _rebuild(tag, _json_leaf, _typed_node if typed else None)


def dumps_json(tree: Tag, indent: Optional[int] = None,
               typed: bool = False) -> str:
    return json.dumps(tag_to_json_value(tree, typed), indent=indent,
                      allow_nan=False)


# ── Text listing ──────────────────────────────────────────────
# One line per node:   name: KIND value
# Containers show their size and indent their children by two spaces.

def _scalar_text(tag: Tag) -> str:
    if isinstance(tag, StringTag):
        return json.dumps(tag.value)
    if isinstance(tag, _ArrayTag):
        return "[{}]".format(", ".join(str(v) for v in tag.values))
    if isinstance(tag, EndTag):
        return ""
    return repr(tag.value)


def _render(tag: Tag, label: str, depth: int, lines: List[str]) -> None:
    pad = "  " * depth
    if isinstance(tag, CompoundTag):
        lines.append("{}{}COMPOUND ({} entries)".format(pad, label, len(tag)))
        for name, child in tag.items():
            _render(child, json.dumps(name) + ": ", depth + 1, lines)
    elif isinstance(tag, ListTag):
        lines.append("{}{}LIST of {} ({} items)".format(
            pad, label, tag.element_kind.name, len(tag)))
        for i, child in enumerate(tag.items):
            _render(child, "[{}] ".format(i), depth + 1, lines)
    else:
        lines.append("{}{}{} {}".format(
            pad, label, tag.kind.name, _scalar_text(tag)).rstrip())


def format_tree(tree: Tag) -> str:
    lines: List[str] = []
    _render(tree, "", 0, lines)
    return "\n".join(lines)
