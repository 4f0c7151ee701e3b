"""Tests for the tag decoder and the root reader.

Organized by tag kind, then by the failure rules that apply across kinds.
"""

from __future__ import annotations

import os
import struct
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from _builders import (
    BYTE,
    BYTE_ARRAY,
    COMPOUND,
    DOUBLE,
    END,
    FLOAT,
    INT,
    INT_ARRAY,
    LIST,
    LONG,
    LONG_ARRAY,
    SHORT,
    STRING,
    array,
    compound,
    entry,
    f32,
    f64,
    i16,
    i32,
    i64,
    i8,
    list_of,
    nested_compounds,
    nested_lists,
    root,
    string,
)
from nbtread import (
    ERR_LENGTH,
    ERR_LIMIT_DEPTH,
    ERR_ROOT,
    ERR_TAG_KIND,
    ERR_TRAILING,
    ERR_TRUNCATED,
    MAX_DEPTH,
    ByteArrayTag,
    ByteTag,
    CompoundTag,
    Cursor,
    DoubleTag,
    FloatTag,
    IntArrayTag,
    IntTag,
    ListTag,
    LongArrayTag,
    LongTag,
    NbtError,
    ShortTag,
    StringTag,
    TagId,
    read_nbt,
    read_payload,
    try_read_nbt,
)


def body(data: bytes) -> CompoundTag:
    """Decode and unwrap the unnamed root."""
    return read_nbt(data)[""]


# ── Root reader ───────────────────────────────────────────────

class TestRoot(unittest.TestCase):
    def test_empty_root(self):
        tree = read_nbt(b"\x0a\x00\x00\x00")
        self.assertEqual(tree, {"": CompoundTag()})
        self.assertEqual(list(tree), [""])

    def test_root_name_kept(self):
        tree = read_nbt(root(entry(BYTE, "b", i8(1)), name="Level"))
        self.assertEqual(list(tree), ["Level"])
        self.assertEqual(tree["Level"]["b"], ByteTag(1))

    def test_single_int(self):
        tree = read_nbt(b"\x0a\x00\x00\x03\x00\x01x\x00\x00\x00\x2a\x00")
        self.assertEqual(tree, {"": {"x": IntTag(42)}})

    def test_root_must_be_compound(self):
        for kind in (END, BYTE, LIST, INT_ARRAY, 0x63):
            with self.subTest(kind=kind):
                with self.assertRaises(NbtError) as ctx:
                    read_nbt(bytes([kind]) + string("") + b"\x00")
                self.assertEqual(ctx.exception.code, ERR_ROOT)
                self.assertEqual(ctx.exception.found, kind)

    def test_empty_input(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(b"")
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)

    def test_trailing_bytes_ignored_by_default(self):
        self.assertEqual(read_nbt(root() + b"junk"), {"": {}})

    def test_trailing_bytes_rejected_when_strict(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(root() + b"junk", strict=True)
        self.assertEqual(ctx.exception.code, ERR_TRAILING)
        self.assertEqual(ctx.exception.offset, 4)
        self.assertEqual(read_nbt(root(), strict=True), {"": {}})

    def test_accepts_bytearray_and_memoryview(self):
        data = root(entry(SHORT, "s", i16(-2)))
        for buf in (bytearray(data), memoryview(data)):
            with self.subTest(type=type(buf).__name__):
                self.assertEqual(read_nbt(buf), {"": {"s": ShortTag(-2)}})

    def test_bad_max_depth(self):
        with self.assertRaises(ValueError):
            read_nbt(root(), max_depth=0)


# ── Scalars ───────────────────────────────────────────────────

class TestScalars(unittest.TestCase):
    def test_every_scalar_kind(self):
        data = root(
            entry(BYTE, "b", i8(-128)),
            entry(SHORT, "s", i16(32767)),
            entry(INT, "i", i32(-(2**31))),
            entry(LONG, "l", i64(2**63 - 1)),
            entry(FLOAT, "f", f32(0.25)),
            entry(DOUBLE, "d", f64(-1e300)),
            entry(STRING, "t", string("text")),
        )
        self.assertEqual(body(data), {
            "b": ByteTag(-128),
            "s": ShortTag(32767),
            "i": IntTag(-(2**31)),
            "l": LongTag(2**63 - 1),
            "f": FloatTag(0.25),
            "d": DoubleTag(-1e300),
            "t": StringTag("text"),
        })

    def test_kinds_are_distinct(self):
        """Byte 1 and Long 1 are different tags."""
        self.assertNotEqual(ByteTag(1), LongTag(1))
        self.assertEqual(body(root(entry(LONG, "v", i64(1))))["v"].kind, TagId.LONG)

    def test_string_raw_bytes(self):
        tag = body(root(entry(STRING, "t", string(b"\xff\xfe"))))["t"]
        self.assertEqual(tag.raw(), b"\xff\xfe")

    def test_truncated_scalar(self):
        for kind, payload in [(SHORT, i16(1)), (INT, i32(1)), (LONG, i64(1)),
                              (FLOAT, f32(1.0)), (DOUBLE, f64(1.0))]:
            with self.subTest(kind=kind):
                data = bytes([COMPOUND]) + string("") + entry(kind, "v", payload[:-1])
                with self.assertRaises(NbtError) as ctx:
                    read_nbt(data)
                self.assertEqual(ctx.exception.code, ERR_TRUNCATED)


# ── Arrays ────────────────────────────────────────────────────

class TestArrays(unittest.TestCase):
    def test_all_array_kinds(self):
        data = root(
            entry(BYTE_ARRAY, "ba", array("b", [1, -1, 127])),
            entry(INT_ARRAY, "ia", array("i", [0, 2**31 - 1])),
            entry(LONG_ARRAY, "la", array("q", [-(2**63)])),
        )
        b = body(data)
        self.assertEqual(b["ba"], ByteArrayTag((1, -1, 127)))
        self.assertEqual(b["ia"], IntArrayTag((0, 2**31 - 1)))
        self.assertEqual(b["la"], LongArrayTag((-(2**63),)))
        self.assertEqual(len(b["ba"]), 3)
        self.assertEqual(b["ia"][1], 2**31 - 1)

    def test_empty_array(self):
        self.assertEqual(body(root(entry(INT_ARRAY, "a", i32(0))))["a"],
                         IntArrayTag(()))

    def test_negative_count(self):
        for kind in (BYTE_ARRAY, INT_ARRAY, LONG_ARRAY):
            with self.subTest(kind=kind):
                with self.assertRaises(NbtError) as ctx:
                    read_nbt(root(entry(kind, "a", i32(-1))))
                self.assertEqual(ctx.exception.code, ERR_LENGTH)
                self.assertEqual(ctx.exception.found, -1)

    def test_count_larger_than_buffer(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(root(entry(LONG_ARRAY, "a", i32(2**31 - 1) + i64(5))))
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)


# ── Lists ─────────────────────────────────────────────────────

class TestLists(unittest.TestCase):
    def test_list_of_bytes(self):
        data = root(entry(LIST, "l", list_of(BYTE, i8(5), i8(7))))
        self.assertEqual(body(data)["l"], ListTag(TagId.BYTE, (ByteTag(5), ByteTag(7))))

    def test_list_of_floats_single_precision(self):
        narrowed = struct.unpack(">f", struct.pack(">f", 0.1))[0]
        data = root(entry(LIST, "l", list_of(FLOAT, f32(0.1), f32(-2.5))))
        self.assertEqual(body(data)["l"],
                         ListTag(TagId.FLOAT, (FloatTag(narrowed), FloatTag(-2.5))))
        self.assertNotEqual(narrowed, 0.1)

    def test_order_preserved(self):
        data = root(entry(LIST, "l", list_of(STRING, string("z"), string("a"))))
        self.assertEqual([t.value for t in body(data)["l"]], ["z", "a"])

    def test_empty_list_keeps_kind(self):
        lst = body(root(entry(LIST, "l", list_of(DOUBLE))))["l"]
        self.assertEqual(lst.element_kind, TagId.DOUBLE)
        self.assertEqual(len(lst), 0)
        self.assertNotEqual(lst, ListTag(TagId.END))

    def test_list_of_end(self):
        lst = body(root(entry(LIST, "l", list_of(END))))["l"]
        self.assertEqual(lst, ListTag(TagId.END, ()))

    def test_list_of_end_with_count(self):
        data = root(entry(LIST, "l", bytes([END]) + i32(3)))
        with self.assertRaises(NbtError) as ctx:
            read_nbt(data)
        self.assertEqual(ctx.exception.code, ERR_LENGTH)

    def test_negative_count(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(root(entry(LIST, "l", bytes([INT]) + i32(-5))))
        self.assertEqual(ctx.exception.code, ERR_LENGTH)

    def test_huge_count_fails_fast(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(root(entry(LIST, "l", bytes([COMPOUND]) + i32(2**31 - 1))))
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)

    def test_bad_element_kind(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(root(entry(LIST, "l", bytes([13]) + i32(0))))
        self.assertEqual(ctx.exception.code, ERR_TAG_KIND)
        self.assertEqual(ctx.exception.found, 13)

    def test_nested_lists(self):
        inner1 = list_of(INT, i32(1), i32(2))
        inner2 = list_of(STRING)
        data = root(entry(LIST, "l", list_of(LIST, inner1, inner2)))
        lst = body(data)["l"]
        self.assertEqual(lst.element_kind, TagId.LIST)
        self.assertEqual(lst[0], ListTag(TagId.INT, (IntTag(1), IntTag(2))))
        self.assertEqual(lst[1].element_kind, TagId.STRING)

    def test_list_of_compounds(self):
        data = root(entry(LIST, "l", list_of(
            COMPOUND,
            compound(entry(BYTE, "a", i8(1))),
            compound(),
        )))
        lst = body(data)["l"]
        self.assertEqual(lst[0], {"a": ByteTag(1)})
        self.assertEqual(lst[1], {})

    def test_list_of_arrays(self):
        data = root(entry(LIST, "l", list_of(INT_ARRAY, array("i", [1]), array("i", []))))
        self.assertEqual(list(body(data)["l"]), [IntArrayTag((1,)), IntArrayTag(())])

    def test_list_followed_by_sibling(self):
        """A List entry must not swallow the entry after it."""
        data = root(
            entry(LIST, "l", list_of(BYTE, i8(1))),
            entry(COMPOUND, "c", compound(entry(INT, "n", i32(9)))),
        )
        b = body(data)
        self.assertEqual(b["l"], ListTag(TagId.BYTE, (ByteTag(1),)))
        self.assertEqual(b["c"], {"n": IntTag(9)})


# ── Compounds ─────────────────────────────────────────────────

class TestCompounds(unittest.TestCase):
    def test_nested(self):
        data = root(entry(COMPOUND, "outer", compound(
            entry(COMPOUND, "inner", compound(entry(STRING, "k", string("v")))))))
        self.assertEqual(body(data)["outer"]["inner"]["k"], StringTag("v"))

    def test_iterates_in_key_order(self):
        data = root(
            entry(BYTE, "zeta", i8(1)),
            entry(BYTE, "alpha", i8(2)),
            entry(BYTE, "Mid", i8(3)),
        )
        self.assertEqual(list(body(data)), ["Mid", "alpha", "zeta"])

    def test_duplicate_name_keeps_first(self):
        data = root(entry(INT, "x", i32(1)), entry(INT, "x", i32(2)))
        b = body(data)
        self.assertEqual(len(b), 1)
        self.assertEqual(b["x"], IntTag(1))

    def test_bad_kind_in_body(self):
        data = bytes([COMPOUND]) + string("") + bytes([99]) + string("x") + b"\x00"
        with self.assertRaises(NbtError) as ctx:
            read_nbt(data)
        self.assertEqual(ctx.exception.code, ERR_TAG_KIND)
        self.assertEqual(ctx.exception.offset, 3)

    def test_bad_kind_deep_inside(self):
        data = root(entry(COMPOUND, "a", compound(entry(LIST, "l", list_of(
            COMPOUND, bytes([0x80]) + string("q"))))))
        with self.assertRaises(NbtError) as ctx:
            read_nbt(data)
        self.assertEqual(ctx.exception.code, ERR_TAG_KIND)

    def test_missing_end(self):
        data = bytes([COMPOUND]) + string("") + entry(BYTE, "a", i8(1))
        with self.assertRaises(NbtError) as ctx:
            read_nbt(data)
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)

    def test_name_truncated(self):
        data = bytes([COMPOUND]) + string("") + bytes([BYTE]) + i16(10) + b"abc"
        with self.assertRaises(NbtError) as ctx:
            read_nbt(data)
        self.assertEqual(ctx.exception.code, ERR_TRUNCATED)


# ── Whole-document properties ─────────────────────────────────

def _sample() -> bytes:
    return root(
        entry(BYTE, "b", i8(3)),
        entry(STRING, "name", string("Steve")),
        entry(LIST, "pos", list_of(DOUBLE, f64(1.0), f64(64.5), f64(-3.25))),
        entry(COMPOUND, "inv", compound(
            entry(INT_ARRAY, "slots", array("i", [1, 2, 3])),
            entry(LIST, "items", list_of(COMPOUND, compound(
                entry(SHORT, "id", i16(276)),
                entry(BYTE_ARRAY, "nbt", array("b", [0, 1])),
            ))),
        )),
        entry(LONG_ARRAY, "seeds", array("q", [7, -7])),
        name="Player",
    )


class TestWholeDocument(unittest.TestCase):
    def test_deterministic(self):
        data = _sample()
        self.assertEqual(read_nbt(data), read_nbt(data))

    def test_every_truncation_fails(self):
        data = _sample()
        for cut in range(len(data)):
            with self.subTest(cut=cut):
                with self.assertRaises(NbtError) as ctx:
                    read_nbt(data[:cut])
                self.assertEqual(ctx.exception.code, ERR_TRUNCATED)

    def test_sample_values(self):
        tree = read_nbt(_sample())
        p = tree["Player"]
        self.assertEqual(p["pos"][1], DoubleTag(64.5))
        self.assertEqual(p["inv"]["items"][0]["id"], ShortTag(276))
        self.assertEqual(list(p["inv"]["slots"]), [1, 2, 3])


class TestDepthLimit(unittest.TestCase):
    def test_at_limit_ok(self):
        tree = read_nbt(nested_compounds(8), max_depth=8)
        self.assertIn("n", tree[""])

    def test_over_limit_fails(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(nested_compounds(9), max_depth=8)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)

    def test_lists_count_toward_depth(self):
        # root body (1) + 4 lists = depth 5
        read_nbt(nested_lists(4), max_depth=5)
        with self.assertRaises(NbtError) as ctx:
            read_nbt(nested_lists(5), max_depth=5)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)

    def test_default_limit_handles_deep_input(self):
        tree = read_nbt(nested_compounds(MAX_DEPTH))
        self.assertEqual(len(tree[""]), 1)

    def test_lists_at_default_limit(self):
        data = nested_lists(MAX_DEPTH - 1)
        tree = read_nbt(data)
        self.assertEqual(try_read_nbt(data), tree)
        node, levels = tree[""]["l"], 1
        while node.element_kind == TagId.LIST:
            node, levels = node[0], levels + 1
        self.assertEqual(levels, MAX_DEPTH - 1)

    def test_lists_past_default_limit(self):
        data = nested_lists(MAX_DEPTH)
        with self.assertRaises(NbtError) as ctx:
            read_nbt(data)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)
        self.assertIsNone(try_read_nbt(data))

    def test_depth_not_bound_by_recursion_limit(self):
        levels = 3 * sys.getrecursionlimit()
        data = nested_lists(levels)
        tree = read_nbt(data, max_depth=levels + 1)
        self.assertEqual(tree, try_read_nbt(data, max_depth=levels + 1))
        with self.assertRaises(NbtError) as ctx:
            read_nbt(data, max_depth=levels)
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)

    def test_default_limit_rejects_adversarial_input(self):
        with self.assertRaises(NbtError) as ctx:
            read_nbt(nested_compounds(5000))
        self.assertEqual(ctx.exception.code, ERR_LIMIT_DEPTH)


class TestReadPayload(unittest.TestCase):
    def test_scalar(self):
        self.assertEqual(read_payload(Cursor(i16(9)), TagId.SHORT), ShortTag(9))

    def test_compound_body(self):
        cur = Cursor(compound(entry(BYTE, "a", i8(1))))
        self.assertEqual(read_payload(cur, TagId.COMPOUND), {"a": ByteTag(1)})
        self.assertTrue(cur.at_end())

    def test_unknown_kind(self):
        with self.assertRaises(NbtError) as ctx:
            read_payload(Cursor(b"\x00"), 42)
        self.assertEqual(ctx.exception.code, ERR_TAG_KIND)


if __name__ == "__main__":
    unittest.main()
