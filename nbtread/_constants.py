"""NBT tag-kind codes, payload widths, and decode limits.

Wire format reference: every multi-byte field is big-endian, signed
two's-complement for integers and IEEE-754 for floats.
"""

from __future__ import annotations

import enum
from typing import Dict


class TagId(enum.IntEnum):
    """The closed set of 13 tag kinds.  The value is the wire byte."""

    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10
    INT_ARRAY = 11
    LONG_ARRAY = 12


# ── Fixed-width payloads ─────────────────────────────────────
# struct format characters; the ">" prefix is added by the cursor.
FMT_I8 = "b"
FMT_U8 = "B"
FMT_I16 = "h"
FMT_I32 = "i"
FMT_I64 = "q"
FMT_F32 = "f"
FMT_F64 = "d"

WIDTHS: Dict[str, int] = {
    FMT_I8: 1,
    FMT_U8: 1,
    FMT_I16: 2,
    FMT_I32: 4,
    FMT_I64: 8,
    FMT_F32: 4,
    FMT_F64: 8,
}

# Smallest number of bytes one element of a List can occupy, per kind.
# Used to reject impossible counts before looping over them.
MIN_PAYLOAD: Dict[TagId, int] = {
    TagId.END: 0,
    TagId.BYTE: 1,
    TagId.SHORT: 2,
    TagId.INT: 4,
    TagId.LONG: 8,
    TagId.FLOAT: 4,
    TagId.DOUBLE: 8,
    TagId.BYTE_ARRAY: 4,
    TagId.STRING: 2,
    TagId.LIST: 5,
    TagId.COMPOUND: 1,
    TagId.INT_ARRAY: 4,
    TagId.LONG_ARRAY: 4,
}

# ── Text ─────────────────────────────────────────────────────
# Names and String payloads are not validated.  surrogateescape keeps any
# byte sequence representable as str and reversible to the same bytes.
STRING_ENCODING = "utf-8"
STRING_ERRORS = "surrogateescape"

# ── Limits ───────────────────────────────────────────────────
# Nesting of List/Compound containers; the root compound body is depth 1.
# Typed JSON export nests two containers per level, and json.dumps must
# stay under the interpreter recursion limit at this depth.
MAX_DEPTH: int = 256
