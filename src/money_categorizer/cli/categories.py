#!/usr/bin/env python3
"""
Category management CLI
"""
import argparse
import sys

from money_categorizer.core.store import TransactionStore
from money_categorizer.errors import CategorizerError
from money_categorizer.utils.db_connection import open_store


def list_categories(store: TransactionStore):
    categories = store.list_categories()
    if not categories:
        print("No categories found. Use 'money-categories add <name>' to create categories "
              "or 'money-categories seed' to add common defaults.")
        return

    width = max(len("Category"), *(len(c.name) for c in categories))
    print(f"{'Category':<{width}}  Internal")
    print("-" * (width + 10))
    for cat in categories:
        print(f"{cat.name:<{width}}  {'Yes' if cat.is_internal else 'No'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='money-categories', description='Manage transaction categories')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('list', help='Show all categories with their internal status')

    add = subparsers.add_parser('add', help='Add a category')
    add.add_argument('name', nargs='+')
    add.add_argument('--internal', action='store_true',
                     help='Mark as internal (transfers/adjustments, excluded from spending totals)')

    remove = subparsers.add_parser('remove', help='Remove a category (only if unused)')
    remove.add_argument('name', nargs='+')

    set_internal = subparsers.add_parser('set-internal', help='Mark a category as internal')
    set_internal.add_argument('name', nargs='+')

    clear_internal = subparsers.add_parser('clear-internal', help='Remove the internal flag from a category')
    clear_internal.add_argument('name', nargs='+')

    subparsers.add_parser('seed', help='Populate common default categories')
    return parser


def run(store: TransactionStore, args) -> int:
    name = ' '.join(getattr(args, 'name', None) or [])

    if args.command == 'list':
        list_categories(store)
    elif args.command == 'add':
        store.add_category(name, is_internal=args.internal)
        status = " (internal)" if args.internal else ""
        print(f"✅ Category '{name}'{status} added")
    elif args.command == 'remove':
        store.delete_category(name)
        print(f"✅ Category '{name}' removed")
    elif args.command == 'set-internal':
        store.set_category_internal(name, True)
        print(f"✅ Category '{name}' marked as internal")
    elif args.command == 'clear-internal':
        store.set_category_internal(name, False)
        print(f"✅ Internal flag removed from category '{name}'")
    elif args.command == 'seed':
        added = store.seed_default_categories()
        print(f"✅ Added {added} default categories")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        store = open_store()
    except CategorizerError as e:
        print(f"❌ {e}")
        return 1

    try:
        return run(store, args)
    except CategorizerError as e:
        print(f"❌ {e}")
        return 1
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
