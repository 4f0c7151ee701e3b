"""NBT value model, one frozen dataclass per tag kind.

    END, BYTE, SHORT, INT, LONG, FLOAT, DOUBLE   scalars
    STRING                                       text, undecoded bytes kept
    BYTE_ARRAY, INT_ARRAY, LONG_ARRAY            fixed-width number runs
    LIST                                         homogeneous, kind declared
    COMPOUND                                     name → tag mapping

Containers own their children outright; the tree never shares a node
and never has cycles.  Nothing here mutates after construction.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import (Any, Callable, ClassVar, Dict, Iterable, Iterator, List,
                    Optional, Tuple, Union)

from ._constants import STRING_ENCODING, STRING_ERRORS, TagId


@dataclass(frozen=True)
class EndTag:
    kind: ClassVar[TagId] = TagId.END


@dataclass(frozen=True)
class ByteTag:
    value: int
    kind: ClassVar[TagId] = TagId.BYTE


@dataclass(frozen=True)
class ShortTag:
    value: int
    kind: ClassVar[TagId] = TagId.SHORT


@dataclass(frozen=True)
class IntTag:
    value: int
    kind: ClassVar[TagId] = TagId.INT


@dataclass(frozen=True)
class LongTag:
    value: int
    kind: ClassVar[TagId] = TagId.LONG


@dataclass(frozen=True)
class FloatTag:
    value: float
    kind: ClassVar[TagId] = TagId.FLOAT


@dataclass(frozen=True)
class DoubleTag:
    value: float
    kind: ClassVar[TagId] = TagId.DOUBLE


@dataclass(frozen=True)
class StringTag:
    value: str
    kind: ClassVar[TagId] = TagId.STRING

    def raw(self) -> bytes:
        """The bytes exactly as they appeared on the wire."""
        return self.value.encode(STRING_ENCODING, STRING_ERRORS)


class _ArrayTag:
    """Read-only sequence behaviour shared by the three array kinds."""

    values: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)

    def __getitem__(self, i):
        return self.values[i]


@dataclass(frozen=True)
class ByteArrayTag(_ArrayTag):
    values: Tuple[int, ...] = ()
    kind: ClassVar[TagId] = TagId.BYTE_ARRAY


@dataclass(frozen=True)
class IntArrayTag(_ArrayTag):
    values: Tuple[int, ...] = ()
    kind: ClassVar[TagId] = TagId.INT_ARRAY


@dataclass(frozen=True)
class LongArrayTag(_ArrayTag):
    values: Tuple[int, ...] = ()
    kind: ClassVar[TagId] = TagId.LONG_ARRAY


@dataclass(frozen=True, eq=False)
class ListTag:
    """Ordered run of tags sharing `element_kind`.

    The element kind is part of the value even when the list is empty,
    so ListTag(BYTE, ()) != ListTag(END, ()).
    """

    element_kind: TagId
    items: Tuple["Tag", ...] = ()
    kind: ClassVar[TagId] = TagId.LIST

    def __post_init__(self) -> None:
        object.__setattr__(self, "element_kind", TagId(self.element_kind))
        object.__setattr__(self, "items", tuple(self.items))
        if self.element_kind == TagId.END and self.items:
            raise ValueError("a list of END must be empty")
        for item in self.items:
            if item.kind != self.element_kind:
                raise ValueError("list of {} holds a {}".format(
                    self.element_kind.name, item.kind.name))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["Tag"]:
        return iter(self.items)

    def __getitem__(self, i):
        return self.items[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ListTag):
            return NotImplemented
        return _same_tree(self, other)

    def __hash__(self) -> int:
        return hash((self.element_kind, self.items))


def _name_bytes(entry: Tuple[str, "Tag"]) -> bytes:
    return entry[0].encode(STRING_ENCODING, STRING_ERRORS)


class CompoundTag(Mapping):
    """Name → tag mapping, iterated in key order.

    Keys are ordered by their raw wire bytes, so names holding invalid
    UTF-8 sort where their bytes would.  Entries come back in that order
    regardless of the order they were written in.  When a name repeats,
    the first occurrence is kept.
    """

    kind: ClassVar[TagId] = TagId.COMPOUND

    __slots__ = ("_entries",)

    def __init__(self, entries: Union[Iterable[Tuple[str, "Tag"]],
                                      Mapping, None] = None) -> None:
        if entries is None:
            entries = ()
        elif isinstance(entries, Mapping):
            entries = entries.items()
        first: Dict[str, Tag] = {}
        for name, tag in entries:
            if name not in first:
                first[name] = tag
        self._entries: Dict[str, Tag] = dict(
            sorted(first.items(), key=_name_bytes))

    def __getitem__(self, name: str) -> "Tag":
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CompoundTag):
            return _same_tree(self, other)
        if isinstance(other, Mapping):
            return self._entries == dict(other.items())
        return NotImplemented

    def __repr__(self) -> str:
        return "CompoundTag({!r})".format(self._entries)


Tag = Union[
    EndTag,
    ByteTag,
    ShortTag,
    IntTag,
    LongTag,
    FloatTag,
    DoubleTag,
    StringTag,
    ByteArrayTag,
    IntArrayTag,
    LongArrayTag,
    ListTag,
    CompoundTag,
]


# ── Tree walks ────────────────────────────────────────────────
# Trees may nest as deep as the decoder allows, so comparison and
# conversion keep their own work lists rather than recursing.

def _same_tree(a: Tag, b: Tag) -> bool:
    pending = [(a, b)]
    while pending:
        x, y = pending.pop()
        if type(x) is not type(y):
            return False
        if isinstance(x, CompoundTag):
            if x._entries.keys() != y._entries.keys():
                return False
            pending.extend((x._entries[k], y._entries[k]) for k in x._entries)
        elif isinstance(x, ListTag):
            if x.element_kind != y.element_kind or len(x.items) != len(y.items):
                return False
            pending.extend(zip(x.items, y.items))
        elif x != y:
            return False
    return True


def _rebuild(tag: Tag, leaf: Callable[[Tag], Any],
             wrap: Optional[Callable[[Tag, Any], Any]] = None) -> Any:
    """Map a tree onto plain dicts and lists.

    Compounds become dicts in key order and Lists become lists; every
    other tag is converted by `leaf`.  When `wrap` is given, each
    converted node is replaced by wrap(tag, node).  Children are filled
    into their parent's dict or list in place, so `wrap` must keep the
    node object it receives rather than copy it.
    """
    out: List[Any] = [None]
    pending: List[Tuple[Tag, Any, Any]] = [(tag, out, 0)]
    while pending:
        node, parent, slot = pending.pop()
        if isinstance(node, CompoundTag):
            body: Any = dict.fromkeys(node)
            pending.extend((child, body, name) for name, child in node.items())
        elif isinstance(node, ListTag):
            body = [None] * len(node.items)
            pending.extend((child, body, i) for i, child in enumerate(node.items))
        else:
            body = leaf(node)
        parent[slot] = body if wrap is None else wrap(node, body)
    return out[0]


def _plain(tag: Tag) -> Any:
    if isinstance(tag, _ArrayTag):
        return list(tag.values)
    if isinstance(tag, EndTag):
        return None
    return tag.value


def to_python(tag: Tag) -> Any:
    """Strip the tag wrappers: Compound → dict, List/arrays → list,
    scalars → int/float/str, End → None."""
    return _rebuild(tag, _plain)
