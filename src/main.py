"""CLI entry point for managing the book collection without the GUI."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List

from config import settings
from domain.errors import BookNotFoundError, BookTrackerError
from domain.models import Book, BookKey, FilterKind, SortOption, compose_author
from gui.app.bootstrap import AppContext, create_app


def _book_json(book: Book) -> Dict[str, Any]:
    data = book.to_dict()
    data["displayAuthor"] = book.display_author
    return data


def _print_books(books: List[Book]) -> None:
    print(json.dumps([_book_json(b) for b in books], indent=2, ensure_ascii=False))


def cmd_list(ctx: AppContext, args: argparse.Namespace) -> int:
    if args.sort:
        ctx.library.set_sort(args.sort)
    _print_books(ctx.library.set_search(args.search or ""))
    return 0


def cmd_add(ctx: AppContext, args: argparse.Namespace) -> int:
    book = Book(
        title=args.title,
        author=compose_author(args.surname, args.name or ""),
        language=args.language or ctx.library.form_defaults().language,
        read=args.read,
        is_youth=args.youth,
        is_on_shelf=args.owned,
        is_non_fiction=args.non_fiction,
    )
    ctx.library.add_book(book)
    print(json.dumps(_book_json(ctx.library.find_book(book) or book), indent=2, ensure_ascii=False))
    return 0


def cmd_delete(ctx: AppContext, args: argparse.Namespace) -> int:
    key = BookKey.of(args.title, args.author)
    if ctx.library.find_book(key) is None:
        raise BookNotFoundError(f"No book with title {args.title!r} by {args.author!r}")
    ctx.library.delete_book(key)
    return 0


def cmd_toggle_read(ctx: AppContext, args: argparse.Namespace) -> int:
    ctx.library.toggle_read(BookKey.of(args.title, args.author))
    return 0


def cmd_filter(ctx: AppContext, args: argparse.Namespace) -> int:
    ctx.library.set_filter(args.kind, args.state == "on")
    return 0


def cmd_languages(ctx: AppContext, args: argparse.Namespace) -> int:
    state = ctx.library.view_state()
    print(
        json.dumps(
            {
                "available": ctx.library.available_languages(),
                "selected": sorted(state.selected_languages),
                "choices": list(ctx.library.form_defaults().language_choices),
            },
            indent=2,
            ensure_ascii=False,
        )
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="booktracker")
    p.add_argument("--data-dir", default=settings.DATA_DIR, help="Preference directory")
    p.add_argument("-v", "--verbose", action="store_true", help="Log to stderr")
    sub = p.add_subparsers(dest="command", required=True)

    lst = sub.add_parser("list", help="Print the filtered, sorted book list")
    lst.add_argument("--search", help="Case-insensitive title/author substring")
    lst.add_argument("--sort", choices=[o.value for o in SortOption], type=str.upper)
    lst.set_defaults(func=cmd_list)

    add = sub.add_parser("add", help="Add a book")
    add.add_argument("--title", required=True)
    add.add_argument("--surname", required=True, help="Author surname")
    add.add_argument("--name", help="Author given name")
    add.add_argument("--language", help="Defaults to the last used language")
    add.add_argument("--read", action="store_true")
    add.add_argument("--youth", action="store_true")
    add.add_argument("--owned", action="store_true")
    add.add_argument("--non-fiction", action="store_true")
    add.set_defaults(func=cmd_add)

    for name, func, help_text in (
        ("delete", cmd_delete, "Delete a book"),
        ("toggle-read", cmd_toggle_read, "Flip a book's read status"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--title", required=True)
        cmd.add_argument("--author", required=True, help='Stored author, e.g. "Herbert, Frank"')
        cmd.set_defaults(func=func)

    flt = sub.add_parser("filter", help="Turn a status/tag filter on or off")
    flt.add_argument("kind", choices=[k.value for k in FilterKind])
    flt.add_argument("state", choices=["on", "off"])
    flt.set_defaults(func=cmd_filter)

    langs = sub.add_parser("languages", help="Show available and selected languages")
    langs.set_defaults(func=cmd_languages)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    with create_app(data_dir=args.data_dir, headless=True, async_writes=False) as ctx:
        try:
            return args.func(ctx, args)
        except BookTrackerError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
