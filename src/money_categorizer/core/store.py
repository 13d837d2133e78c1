"""
Transaction store

TransactionStore is the interface both engines read from and write to.
PostgresTransactionStore implements it on top of a psycopg2 connection.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

import psycopg2

from ..errors import StoreError
from .models import Account, CategorizedExample, Category, Transaction


DEFAULT_CATEGORIES = [
    # (name, is_internal)
    ('Groceries', False),
    ('Dining Out', False),
    ('Coffee', False),
    ('Gas', False),
    ('Transportation', False),
    ('Shopping', False),
    ('Utilities', False),
    ('Rent', False),
    ('Insurance', False),
    ('Healthcare', False),
    ('Entertainment', False),
    ('Subscriptions', False),
    ('Travel', False),
    ('Personal Care', False),
    ('Gifts', False),
    ('Fees', False),
    ('Salary', False),
    ('Interest', False),
    ('Other Income', False),
    ('Transfer', True),
    ('Credit Card Payment', True),
    ('Adjustment', True),
]


class TransactionStore(ABC):
    """Read/write access to transactions, categories and accounts"""

    @abstractmethod
    def list_transactions(self,
                          account_id: Optional[str] = None,
                          start_date: Optional[str] = None,
                          end_date: Optional[str] = None) -> List[Transaction]:
        """All transactions (newest first), optionally filtered by account and date range"""

    @abstractmethod
    def list_uncategorized(self) -> List[Transaction]:
        """Transactions with no category that are not flagged as transfers"""

    @abstractmethod
    def list_categories(self) -> List[Category]:
        ...

    @abstractmethod
    def list_accounts(self) -> List[Account]:
        ...

    @abstractmethod
    def get_or_create_category(self, name: str) -> int:
        """Category id for an exact name, creating a regular category if missing"""

    @abstractmethod
    def set_category(self, transaction_id: str, category_id: int):
        ...

    @abstractmethod
    def clear_category(self, transaction_id: str):
        ...

    @abstractmethod
    def set_transfer_flag(self, transaction_id: str):
        ...

    @abstractmethod
    def clear_transfer_flag(self, transaction_id: str):
        ...

    @abstractmethod
    def account_display_name(self, account_id: str) -> str:
        """Nickname or name of the account, or the id itself if unknown"""

    @abstractmethod
    def add_category(self, name: str, is_internal: bool = False) -> int:
        ...

    @abstractmethod
    def delete_category(self, name: str):
        """Remove a category; refuses when any transaction still uses it"""

    @abstractmethod
    def set_category_internal(self, name: str, is_internal: bool):
        ...

    @abstractmethod
    def seed_default_categories(self) -> int:
        """Insert DEFAULT_CATEGORIES that don't exist yet; returns how many were added"""

    @abstractmethod
    def list_categorized_examples(self, limit: int = 10) -> List[CategorizedExample]:
        """Most recent categorized, non-transfer transactions"""


def _posted_str(value) -> str:
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def _row_to_transaction(row) -> Transaction:
    return Transaction(
        id=row[0],
        account_id=row[1],
        posted=_posted_str(row[2]),
        amount=int(row[3]),
        description=row[4],
        pending=bool(row[5]),
        is_transfer=bool(row[6]),
        category_id=row[7],
    )


TRANSACTION_COLUMNS = """
    id, account_id, posted, amount, description, pending, is_transfer, category_id
"""


class PostgresTransactionStore(TransactionStore):
    """
    TransactionStore backed by PostgreSQL (see db/schema.sql)

    Every write commits immediately; on error the connection is rolled back
    and a StoreError is raised.
    """

    def __init__(self, conn):
        """
        Args:
            conn: psycopg2 connection
        """
        self.conn = conn

    def close(self):
        self.conn.close()

    def _query(self, sql: str, params=None) -> list:
        cursor = self.conn.cursor()
        try:
            cursor.execute(sql, params)
            return cursor.fetchall()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Database read failed: {e}") from e
        finally:
            cursor.close()

    def _execute(self, sql: str, params=None) -> int:
        cursor = self.conn.cursor()
        try:
            cursor.execute(sql, params)
            rowcount = cursor.rowcount
            self.conn.commit()
            return rowcount
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Database write failed: {e}") from e
        finally:
            cursor.close()

    def _update_transaction(self, sql: str, params, transaction_id: str):
        if self._execute(sql, params) == 0:
            raise StoreError(f"Transaction not found: {transaction_id}")

    # Transactions

    def list_transactions(self, account_id=None, start_date=None, end_date=None) -> List[Transaction]:
        clauses = []
        params = []
        if account_id:
            clauses.append("account_id = %s")
            params.append(account_id)
        if start_date:
            clauses.append("posted >= %s")
            params.append(start_date)
        if end_date:
            clauses.append("posted < (%s::date + INTERVAL '1 day')")
            params.append(end_date)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._query(f"""
            SELECT {TRANSACTION_COLUMNS}
            FROM transactions
            {where}
            ORDER BY posted DESC, id
        """, params)
        return [_row_to_transaction(row) for row in rows]

    def list_uncategorized(self) -> List[Transaction]:
        rows = self._query(f"""
            SELECT {TRANSACTION_COLUMNS}
            FROM transactions
            WHERE category_id IS NULL
              AND is_transfer = FALSE
            ORDER BY posted DESC, id
        """)
        return [_row_to_transaction(row) for row in rows]

    def set_category(self, transaction_id: str, category_id: int):
        self._update_transaction("""
            UPDATE transactions
            SET category_id = %s,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        """, (category_id, transaction_id), transaction_id)

    def clear_category(self, transaction_id: str):
        self._update_transaction("""
            UPDATE transactions
            SET category_id = NULL,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        """, (transaction_id,), transaction_id)

    def set_transfer_flag(self, transaction_id: str):
        self._update_transaction("""
            UPDATE transactions
            SET is_transfer = TRUE,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        """, (transaction_id,), transaction_id)

    def clear_transfer_flag(self, transaction_id: str):
        self._update_transaction("""
            UPDATE transactions
            SET is_transfer = FALSE,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
        """, (transaction_id,), transaction_id)

    def list_categorized_examples(self, limit: int = 10) -> List[CategorizedExample]:
        if limit <= 0:
            return []
        rows = self._query("""
            SELECT t.description, t.amount, c.name
            FROM transactions t
            JOIN categories c ON c.id = t.category_id
            WHERE t.is_transfer = FALSE
            ORDER BY t.posted DESC, t.id
            LIMIT %s
        """, (limit,))
        return [CategorizedExample(description=r[0], amount=int(r[1]), category=r[2]) for r in rows]

    # Accounts

    def list_accounts(self) -> List[Account]:
        rows = self._query("""
            SELECT id, name, nickname, account_type
            FROM accounts
            ORDER BY COALESCE(NULLIF(nickname, ''), name), id
        """)
        return [Account(id=r[0], name=r[1], nickname=r[2] or None, account_type=r[3]) for r in rows]

    def account_display_name(self, account_id: str) -> str:
        rows = self._query("""
            SELECT COALESCE(NULLIF(nickname, ''), name)
            FROM accounts
            WHERE id = %s
        """, (account_id,))
        return rows[0][0] if rows else account_id

    # Categories

    def list_categories(self) -> List[Category]:
        rows = self._query("""
            SELECT id, name, is_internal
            FROM categories
            ORDER BY name
        """)
        return [Category(id=r[0], name=r[1], is_internal=bool(r[2])) for r in rows]

    def _category_id(self, name: str) -> Optional[int]:
        rows = self._query("SELECT id FROM categories WHERE name = %s", (name,))
        return rows[0][0] if rows else None

    def add_category(self, name: str, is_internal: bool = False) -> int:
        name = (name or '').strip()
        if not name:
            raise StoreError("Category name cannot be empty")
        self._execute("""
            INSERT INTO categories (name, is_internal)
            VALUES (%s, %s)
            ON CONFLICT (name) DO UPDATE SET is_internal = EXCLUDED.is_internal
        """, (name, is_internal))
        return self._category_id(name)

    def get_or_create_category(self, name: str) -> int:
        name = (name or '').strip()
        if not name:
            raise StoreError("Category name cannot be empty")
        existing = self._category_id(name)
        if existing is not None:
            return existing
        self._execute("""
            INSERT INTO categories (name, is_internal)
            VALUES (%s, FALSE)
            ON CONFLICT (name) DO NOTHING
        """, (name,))
        return self._category_id(name)

    def delete_category(self, name: str):
        category_id = self._category_id(name)
        if category_id is None:
            raise StoreError(f"Category not found: {name}")
        in_use = self._query("SELECT COUNT(*) FROM transactions WHERE category_id = %s", (category_id,))
        if in_use[0][0] > 0:
            raise StoreError(f"Category '{name}' is used by {in_use[0][0]} transactions")
        self._execute("DELETE FROM categories WHERE id = %s", (category_id,))

    def set_category_internal(self, name: str, is_internal: bool):
        updated = self._execute("""
            UPDATE categories
            SET is_internal = %s
            WHERE name = %s
        """, (is_internal, name))
        if updated == 0:
            raise StoreError(f"Category not found: {name}")

    def seed_default_categories(self) -> int:
        added = 0
        for name, is_internal in DEFAULT_CATEGORIES:
            added += self._execute("""
                INSERT INTO categories (name, is_internal)
                VALUES (%s, %s)
                ON CONFLICT (name) DO NOTHING
            """, (name, is_internal))
        return added
