"""A persistent echo command.

Usage:
    python -m examples.memo [VALUE]
    python -m examples.memo --reset

The memo survives between runs when ``--path`` (or ``KVDEFAULTS_PATH``)
points at a directory for the disk store.

Exit codes:
    0: Success
    2: ``--reset`` with nothing to reset
"""

from __future__ import annotations

import argparse
import sys

from kvdefaults import Defaults, DefaultsProperty, Key, create_defaults, shared

HINT = "nothing to remember. set as first input, or use flag -r or --reset to reset."


class MemoKey(Key[str | None]):
    pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="memo", description="Remember a value.")
    parser.add_argument("value", nargs="?", help="New value to remember")
    parser.add_argument("-r", "--reset", action="store_true", help="Forget the memo")
    parser.add_argument("--path", help="Directory of the disk store")
    return parser


def run(args: argparse.Namespace, defaults: Defaults) -> int:
    memo: DefaultsProperty[str | None] = DefaultsProperty(MemoKey, defaults=defaults)

    if args.reset:
        if memo.get() is None:
            print("nothing to reset", file=sys.stderr)
            return 2
        memo.set(None)
        return 0

    if args.value is not None:
        memo.set(args.value)
    current = memo.get()
    print(current if current is not None else HINT)
    return 0


def main(argv: list[str] | None = None, *, defaults: Defaults | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)
    if defaults is not None:
        return run(args, defaults)
    if args.path is None:
        return run(args, shared())

    disk = create_defaults(storage="disk", path=args.path)
    try:
        return run(args, disk)
    finally:
        disk.backend.close()


if __name__ == "__main__":
    sys.exit(main())
