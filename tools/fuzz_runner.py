#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Property fuzzing for the nbtread decoder.
#
# Each round builds a random tree, encodes it here (nbtread has no
# encoder), and checks:
#   A) the bytes decode to the generated tree, twice, identically
#   B) every strict prefix of the bytes fails with ERR_TRUNCATED
#   C) random byte flips either decode or raise NbtError; nothing else
#      may escape
#
# Any violation prints a hex repro and exits non-zero.

import os, sys, random, struct
from typing import Any, List, Tuple

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from nbtread import ERR_TRUNCATED, NbtError, read_nbt, to_python

SEED = int(os.environ.get("NBT_SEED", "4242"))
ROUNDS = int(os.environ.get("NBT_FUZZ_ROUNDS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("NBT_GEN_MAX_DEPTH", "5"))
FLIPS = int(os.environ.get("NBT_FLIPS", "8"))

random.seed(SEED)

# (kind, struct fmt) for fixed-width scalars and arrays
SCALARS = [(1, "b"), (2, "h"), (3, "i"), (4, "q"), (5, "f"), (6, "d")]
ARRAYS = [(7, "b"), (11, "i"), (12, "q")]
RANGES = {"b": 7, "h": 15, "i": 31, "q": 63}

# --- generator: returns (kind, payload_bytes, python_value) ---

def rand_name(nmax: int = 8) -> str:
    n = random.randint(0, nmax)
    return "".join(chr(random.randint(0x61, 0x7A)) for _ in range(n))

def enc_string(s: str) -> bytes:
    raw = s.encode("utf-8")
    return struct.pack(">h", len(raw)) + raw

def rand_int(fmt: str) -> int:
    bits = RANGES[fmt]
    return random.randint(-(1 << bits), (1 << bits) - 1)

def rand_number(fmt: str) -> Any:
    if fmt == "d":
        return random.uniform(-1e6, 1e6)
    if fmt == "f":
        # what the decoder sees after narrowing to IEEE single precision
        return struct.unpack(">f", struct.pack(">f", random.uniform(-1e6, 1e6)))[0]
    return rand_int(fmt)

def gen_scalar() -> Tuple[int, bytes, Any]:
    r = random.random()
    if r < 0.15:
        s = rand_name(16)
        return 8, enc_string(s), s
    if r < 0.30:
        kind, fmt = random.choice(ARRAYS)
        vals = [rand_int(fmt) for _ in range(random.randint(0, 6))]
        return kind, struct.pack(">i{}{}".format(len(vals), fmt), len(vals), *vals), vals
    return gen_scalar_of(*random.choice(SCALARS))

def gen_compound(depth: int) -> Tuple[bytes, dict]:
    parts: List[bytes] = []
    value = {}
    for _ in range(random.randint(0, 5)):
        name = rand_name()
        kind, payload, v = gen_value(depth + 1)
        parts.append(bytes([kind]) + enc_string(name) + payload)
        value.setdefault(name, v)  # first occurrence wins
    return b"".join(parts) + b"\x00", value

def gen_list(depth: int) -> Tuple[bytes, list]:
    n = random.randint(0, 4)
    if n == 0 and random.random() < 0.3:
        return b"\x00" + struct.pack(">i", 0), []
    if depth >= MAX_GEN_DEPTH or random.random() < 0.6:
        kind, fmt = random.choice(SCALARS)
        items = [gen_scalar_of(kind, fmt) for _ in range(n)]
    else:
        kind = 10
        items = [(10,) + gen_compound(depth + 1) for _ in range(n)]
    payload = bytes([kind]) + struct.pack(">i", n) + b"".join(p for _, p, _ in items)
    return payload, [v for _, _, v in items]

def gen_scalar_of(kind: int, fmt: str) -> Tuple[int, bytes, Any]:
    v = rand_number(fmt)
    return kind, struct.pack(">" + fmt, v), v

def gen_value(depth: int) -> Tuple[int, bytes, Any]:
    if depth >= MAX_GEN_DEPTH or random.random() < 0.6:
        return gen_scalar()
    if random.random() < 0.5:
        payload, v = gen_compound(depth)
        return 10, payload, v
    payload, v = gen_list(depth)
    return 9, payload, v

def gen_document() -> Tuple[bytes, dict]:
    name = rand_name()
    body, value = gen_compound(1)
    return b"\x0a" + enc_string(name) + body, {name: value}

# --- checks ---

def fail(label: str, data: bytes, detail: Any) -> None:
    print("VIOLATION:", label)
    print("INPUT:", data.hex())
    print("DETAIL:", detail)
    raise SystemExit(1)

def main() -> int:
    for i in range(ROUNDS):
        data, expected = gen_document()

        # A) decode matches the generated tree, deterministically
        try:
            t1 = read_nbt(data)
            t2 = read_nbt(data)
        except NbtError as e:
            fail("A valid document rejected", data, "[{}] {}".format(e.code, e))
        if to_python(t1) != expected:
            fail("A decoded tree differs", data, to_python(t1))
        if t1 != t2:
            fail("A non-deterministic decode", data, (t1, t2))

        # B) every truncation fails with ERR_TRUNCATED
        for cut in range(len(data)):
            try:
                read_nbt(data[:cut])
            except NbtError as e:
                if e.code != ERR_TRUNCATED:
                    fail("B truncation gave wrong code", data[:cut], e.code)
                continue
            fail("B truncated document accepted", data[:cut], cut)

        # C) byte flips: decode or NbtError, never anything else
        for _ in range(FLIPS):
            buf = bytearray(data)
            pos = random.randrange(len(buf))
            buf[pos] = random.getrandbits(8)
            try:
                read_nbt(bytes(buf))
            except NbtError:
                pass
            except Exception as e:  # noqa: BLE001
                fail("C unexpected exception", bytes(buf), repr(e))

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no violations)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
