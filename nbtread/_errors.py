"""nbtread error codes and exception class.

Decoding is all-or-nothing: the first problem found anywhere in the
stream raises an NbtError and the partially built tree is dropped.
The code says what kind of problem it was, the offset says where.
"""

from __future__ import annotations

from typing import Any, Optional

# ── Error codes ──────────────────────────────────────────────

ERR_TRUNCATED: str = "ERR_TRUNCATED"      # fewer bytes left than a read needs
ERR_TAG_KIND: str = "ERR_TAG_KIND"        # kind byte outside 0..12
ERR_LENGTH: str = "ERR_LENGTH"            # negative or unusable length/count
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"  # nesting deeper than max_depth
ERR_ROOT: str = "ERR_ROOT"                # top-level value is not a Compound
ERR_TRAILING: str = "ERR_TRAILING"        # bytes after the root (strict mode)
ERR_PATH: str = "ERR_PATH"                # path lookup on a decoded tree failed


class NbtError(Exception):
    """Exception for NBT decoding errors.

    `.code` is one of the ERR_* strings above.  `.offset` is the byte
    position where the failing read started, when known.  `.expected` and
    `.found` carry extra detail for kind and length mismatches.
    """

    def __init__(self, code: str, msg: str = "", *,
                 offset: Optional[int] = None,
                 expected: Any = None,
                 found: Any = None) -> None:
        super().__init__(msg or code)
        self.code = code
        self.offset = offset
        self.expected = expected
        self.found = found

    def __str__(self) -> str:
        msg = super().__str__()
        if self.offset is None:
            return msg
        return "{} (at offset {})".format(msg, self.offset)
