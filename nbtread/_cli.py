"""nbtread command-line interface.

Usage:
    python3 -m nbtread dump --input level.dat.raw
    cat player.nbt | python3 -m nbtread dump --json --indent 2
    python3 -m nbtread dump -i level.nbt --path /Data/Player --typed --json
    python3 -m nbtread check -i level.nbt --strict
    python3 -m nbtread version

Input must already be decompressed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import (
    MAX_DEPTH,
    NbtError,
    __version__,
    dumps_json,
    format_tree,
    get_path,
    read_nbt,
)


def _add_decode_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--input", "-i", metavar="FILE",
                   help="Read NBT from FILE instead of stdin")
    p.add_argument("--max-depth", type=int, default=MAX_DEPTH, metavar="N",
                   help="Maximum List/Compound nesting (default: %(default)s)")
    p.add_argument("--strict", action="store_true",
                   help="Reject bytes after the root compound")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nbtread",
        description="nbtread: decode uncompressed NBT binary tag data",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log decoder details to stderr")
    sub = parser.add_subparsers(dest="command")

    # ── dump ──
    dump_p = sub.add_parser("dump", help="Print the decoded tree")
    _add_decode_options(dump_p)
    dump_p.add_argument("--json", action="store_true",
                        help="Emit JSON instead of the text listing")
    dump_p.add_argument("--typed", action="store_true",
                        help="With --json, keep tag kinds on every node")
    dump_p.add_argument("--indent", type=int, default=None, metavar="N",
                        help="With --json, indent by N spaces")
    dump_p.add_argument("--path", default="", metavar="PTR",
                        help="Only show the node at this JSON pointer")

    # ── check ──
    check_p = sub.add_parser("check", help="Validate without printing the tree")
    _add_decode_options(check_p)

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read raw bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("nbtread: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _cmd_dump(args: argparse.Namespace) -> None:
    tree = read_nbt(_read_input(args.input), max_depth=args.max_depth,
                    strict=args.strict)
    node = get_path(tree, args.path)
    if not hasattr(node, "kind"):
        # A single array element is a bare int.
        print(node)
        return
    if args.json:
        print(dumps_json(node, indent=args.indent, typed=args.typed))
    else:
        print(format_tree(node))


def _cmd_check(args: argparse.Namespace) -> None:
    tree = read_nbt(_read_input(args.input), max_depth=args.max_depth,
                    strict=args.strict)
    (name,) = tree.keys()
    print("ok: root {!r} with {} entries".format(name, len(tree[name])))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if getattr(args, "max_depth", 1) < 1:
        parser.error("--max-depth must be at least 1")

    if args.command == "version":
        print(f"nbtread {__version__}")
        return

    try:
        if args.command == "dump":
            _cmd_dump(args)
        elif args.command == "check":
            _cmd_check(args)
    except NbtError as e:
        where = "" if e.offset is None else " at offset {}".format(e.offset)
        print(f"nbtread: error [{e.code}]{where}: {e.args[0]}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"nbtread: cannot read input: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
