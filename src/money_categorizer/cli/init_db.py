#!/usr/bin/env python3
"""
Database initialization script

Creates the accounts/categories/transactions tables and optionally seeds
default categories.
"""
import argparse
import sys

from money_categorizer.core.store import PostgresTransactionStore
from money_categorizer.errors import CategorizerError
from money_categorizer.utils.db_connection import SCHEMA_FILE, apply_schema, get_db_connection


def print_summary(conn):
    """Print database summary"""
    cursor = conn.cursor()
    try:
        print("\n" + "=" * 80)
        print("📊 DATABASE SUMMARY")
        print("=" * 80)
        for table in ('accounts', 'categories', 'transactions'):
            cursor.execute(f"SELECT COUNT(*) FROM {table}")
            print(f"   {table:<14} {cursor.fetchone()[0]}")
        print("=" * 80)
    finally:
        cursor.close()


def main(argv=None) -> int:
    """Main initialization function"""
    parser = argparse.ArgumentParser(prog='money-init-db', description='Create the categorizer database schema')
    parser.add_argument('--seed', action='store_true', help='Also add the default categories')
    args = parser.parse_args(argv)

    print("=" * 80)
    print("🗄️  DATABASE INITIALIZATION")
    print("=" * 80)

    try:
        conn = get_db_connection()
        print("✅ Connected to database")
    except CategorizerError as e:
        print(f"❌ {e}")
        return 1

    try:
        print(f"\n📄 Applying schema")
        print(f"   File: {SCHEMA_FILE}")
        apply_schema(conn)
        print("   ✅ Success")

        if args.seed:
            print("\n📚 Seeding default categories")
            added = PostgresTransactionStore(conn).seed_default_categories()
            print(f"   ✅ Added {added} categories")

        print_summary(conn)
    except CategorizerError as e:
        print(f"   ❌ Error: {e}")
        return 1
    finally:
        conn.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
