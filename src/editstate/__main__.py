"""Entry point: python -m editstate [--config PATH] {paths,show,trim}

- paths:            Resolved history file per category
- show CATEGORY:    Dump stored records as JSON lines
- trim [CATEGORY]:  Enforce max-entries now (all trimmable categories by default)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path

from editstate.config import load_config
from editstate.errors import StoreError
from editstate.persistence import Category, Persistence


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _json_default(obj: object) -> object:
    if isinstance(obj, Enum):
        return obj.name.lower()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"cannot serialize {type(obj).__name__}")


def _to_json(record: object) -> str:
    data = asdict(record) if is_dataclass(record) else record
    return json.dumps(data, default=_json_default, ensure_ascii=False)


def _cmd_paths(persistence: Persistence, args: argparse.Namespace) -> None:
    for category in Category:
        state = "enabled" if persistence.enabled(category) else "disabled"
        print(f"{category.value:<10} {state:<9} {persistence.file_path(category)}")


def _cmd_show(persistence: Persistence, args: argparse.Namespace) -> None:
    category = Category(args.category)
    readers = {
        Category.COMMANDS: persistence.read_command_history,
        Category.SEARCH: persistence.read_search_history,
        Category.FILES: persistence.read_file_history,
        Category.CLIPBOARD: persistence.read_clipboard_file,
        Category.SPLITS: persistence.read_split_file,
    }
    for record in readers[category]():
        print(_to_json(record))


def _cmd_trim(persistence: Persistence, args: argparse.Namespace) -> None:
    trimmers = {
        Category.COMMANDS: persistence.trim_command_history,
        Category.SEARCH: persistence.trim_search_history,
        Category.FILES: persistence.trim_file_history,
        Category.SPLITS: persistence.trim_split_file,
    }
    if args.category is None:
        categories = list(trimmers)
    else:
        categories = [Category(args.category)]
        if categories[0] not in trimmers:
            print(f"Category '{args.category}' has no trim.", file=sys.stderr)
            sys.exit(1)

    for category in categories:
        dropped = trimmers[category]()
        print(f"{category.value}: dropped {dropped} entries")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="editstate",
        description="Inspect and maintain persisted editor history.",
    )
    parser.add_argument("--config", type=Path, help="Path to editstate.toml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parser_paths = subparsers.add_parser("paths", help="Show the history file of each category")
    parser_paths.set_defaults(func=_cmd_paths)

    category_names = [c.value for c in Category]
    parser_show = subparsers.add_parser("show", help="Print the stored records of a category")
    parser_show.add_argument("category", choices=category_names)
    parser_show.set_defaults(func=_cmd_show)

    parser_trim = subparsers.add_parser("trim", help="Drop entries beyond max-entries")
    parser_trim.add_argument("category", nargs="?", choices=category_names)
    parser_trim.set_defaults(func=_cmd_trim)
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    _setup_logging(config.log_level)

    persistence = Persistence.from_config(config)
    try:
        args.func(persistence, args)
    except StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
