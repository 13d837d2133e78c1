#!/usr/bin/env python3
"""
Transaction categorization CLI

  money-categorize              interactive categorization (default)
  money-categorize manual       interactive categorization
  money-categorize auto         LLM categorization of uncategorized transactions
  money-categorize auto --all   LLM categorization of every transaction
"""
import argparse
import sys

from money_categorizer.config import load_settings
from money_categorizer.core.categorization_orchestrator import (
    SCOPE_ALL,
    SCOPE_UNCATEGORIZED,
    run_automatic_categorization,
)
from money_categorizer.core.gateway import build_gateway
from money_categorizer.errors import CategorizerError
from money_categorizer.tui import run_interactive_session
from money_categorizer.utils.db_connection import open_store


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='money-categorize',
        description='Categorize transactions automatically (LLM) or interactively',
    )
    subparsers = parser.add_subparsers(dest='command')

    auto = subparsers.add_parser('auto', help='Automatically categorize transactions using an LLM')
    auto.add_argument('--all', action='store_true',
                      help='Re-process all transactions, not just uncategorized ones')

    subparsers.add_parser('manual', help='Interactive spreadsheet-style categorization')
    return parser


def run_auto(process_all: bool) -> int:
    settings = load_settings()
    scope = SCOPE_ALL if process_all else SCOPE_UNCATEGORIZED

    print("=" * 80)
    print("🤖 AUTO-CATEGORIZATION")
    print("=" * 80)
    print(f"Scope:      {scope}")
    print(f"LLM:        {settings.llm_backend} "
          f"({settings.llm_prompt_cmd if settings.llm_backend == 'command' else settings.llm_model})")
    print(f"Batch size: {settings.batch_size}")
    print("=" * 80)

    gateway = build_gateway(settings)
    store = open_store(settings)
    try:
        run_automatic_categorization(
            store,
            gateway,
            scope=scope,
            batch_size=settings.batch_size,
            example_limit=settings.example_limit,
        )
    finally:
        store.close()
    return 0


def run_manual() -> int:
    store = open_store()
    try:
        run_interactive_session(store)
    finally:
        store.close()
    return 0


def main(argv=None) -> int:
    """Main categorization entry point"""
    args = build_parser().parse_args(argv)

    try:
        if args.command == 'auto':
            return run_auto(args.all)
        return run_manual()
    except CategorizerError as e:
        print(f"\n❌ Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
