import json
import re
import sys
from pathlib import Path
from typing import List, Optional

import pytest

sys.path.append(str(Path(__file__).parents[1] / "src"))

from money_categorizer.core.models import Account, CategorizedExample, Category, Transaction
from money_categorizer.core.store import DEFAULT_CATEGORIES, TransactionStore
from money_categorizer.errors import GatewayError, StoreError


class FakeStore(TransactionStore):
    """In-memory TransactionStore that records every write"""

    def __init__(self, transactions=None, categories=None, accounts=None):
        self.transactions = {t.id: t for t in (transactions or [])}
        self.order = [t.id for t in (transactions or [])]
        self.categories = {c.id: c for c in (categories or [])}
        self.accounts = {a.id: a for a in (accounts or [])}
        self.writes = []
        self.fail_writes = False
        self.closed = False

    def close(self):
        self.closed = True

    def _txn(self, transaction_id: str) -> Transaction:
        if self.fail_writes:
            raise StoreError("disk full")
        if transaction_id not in self.transactions:
            raise StoreError(f"Transaction not found: {transaction_id}")
        return self.transactions[transaction_id]

    def list_transactions(self, account_id=None, start_date=None, end_date=None) -> List[Transaction]:
        txns = [self.transactions[i] for i in self.order]
        if account_id:
            txns = [t for t in txns if t.account_id == account_id]
        return [Transaction(**vars(t)) for t in txns]

    def list_uncategorized(self) -> List[Transaction]:
        return [t for t in self.list_transactions() if t.category_id is None and not t.is_transfer]

    def list_categories(self) -> List[Category]:
        return sorted((Category(**vars(c)) for c in self.categories.values()), key=lambda c: c.name)

    def list_accounts(self) -> List[Account]:
        return list(self.accounts.values())

    def _by_name(self, name: str) -> Optional[Category]:
        for cat in self.categories.values():
            if cat.name == name:
                return cat
        return None

    def get_or_create_category(self, name: str) -> int:
        existing = self._by_name(name)
        if existing:
            return existing.id
        return self.add_category(name)

    def set_category(self, transaction_id: str, category_id: int):
        self._txn(transaction_id).category_id = category_id
        self.writes.append(('set_category', transaction_id, category_id))

    def clear_category(self, transaction_id: str):
        self._txn(transaction_id).category_id = None
        self.writes.append(('clear_category', transaction_id))

    def set_transfer_flag(self, transaction_id: str):
        self._txn(transaction_id).is_transfer = True
        self.writes.append(('set_transfer_flag', transaction_id))

    def clear_transfer_flag(self, transaction_id: str):
        self._txn(transaction_id).is_transfer = False
        self.writes.append(('clear_transfer_flag', transaction_id))

    def account_display_name(self, account_id: str) -> str:
        account = self.accounts.get(account_id)
        return account.display_name if account else account_id

    def add_category(self, name: str, is_internal: bool = False) -> int:
        existing = self._by_name(name)
        if existing:
            existing.is_internal = is_internal
            return existing.id
        new_id = max(self.categories, default=0) + 1
        self.categories[new_id] = Category(id=new_id, name=name, is_internal=is_internal)
        return new_id

    def delete_category(self, name: str):
        cat = self._by_name(name)
        if cat is None:
            raise StoreError(f"Category not found: {name}")
        if any(t.category_id == cat.id for t in self.transactions.values()):
            raise StoreError(f"Category '{name}' is in use")
        del self.categories[cat.id]

    def set_category_internal(self, name: str, is_internal: bool):
        cat = self._by_name(name)
        if cat is None:
            raise StoreError(f"Category not found: {name}")
        cat.is_internal = is_internal

    def seed_default_categories(self) -> int:
        added = 0
        for name, is_internal in DEFAULT_CATEGORIES:
            if self._by_name(name) is None:
                self.add_category(name, is_internal)
                added += 1
        return added

    def list_categorized_examples(self, limit: int = 10) -> List[CategorizedExample]:
        examples = []
        for t in self.list_transactions():
            if t.category_id is not None and not t.is_transfer:
                examples.append(CategorizedExample(t.description, t.amount, self.categories[t.category_id].name))
        return examples[:limit]


class FakeGateway:
    """
    Returns scripted responses in order

    A response may be a string, a dict (serialized to JSON), or an
    exception instance (raised).
    """

    def __init__(self, responses=None, default=None):
        self.responses = list(responses or [])
        self.default = default
        self.prompts = []

    def run(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.responses:
            response = self.responses.pop(0)
        elif self.default is not None:
            response = self.default(prompt) if callable(self.default) else self.default
        else:
            raise GatewayError("no scripted response")

        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response

    @property
    def calls(self) -> int:
        return len(self.prompts)


def make_txn(id, description="Purchase", amount=-1000, account_id="chk", posted="2025-01-15T12:00:00",
             category_id=None, is_transfer=False):
    return Transaction(
        id=id,
        account_id=account_id,
        posted=posted,
        amount=amount,
        description=description,
        category_id=category_id,
        is_transfer=is_transfer,
    )


@pytest.fixture
def accounts():
    return [
        Account(id="chk", name="CHASE TOTAL CHECKING", nickname="Checking", account_type="checking"),
        Account(id="sav", name="Ally Savings", account_type="savings"),
        Account(id="cc", name="Sapphire Preferred", nickname="Sapphire", account_type="credit"),
    ]


@pytest.fixture
def categories():
    return [
        Category(id=1, name="Groceries"),
        Category(id=2, name="Gas"),
        Category(id=3, name="Dining Out"),
        Category(id=4, name="Salary"),
        Category(id=5, name="Transfer", is_internal=True),
    ]


@pytest.fixture
def transactions():
    return [
        make_txn("t1", "STARBUCKS #123", -550, account_id="cc"),
        make_txn("t2", "SHELL OIL 5744", -4200, account_id="cc"),
        make_txn("t3", "ACME CORP PAYROLL", 250000, account_id="chk"),
        make_txn("t4", "TRANSFER TO SAVINGS", -50000, account_id="chk"),
        make_txn("t5", "TRANSFER FROM CHECKING", 50000, account_id="sav"),
        make_txn("t6", "TRADER JOE'S", -8412, account_id="cc"),
    ]


@pytest.fixture
def store(transactions, categories, accounts):
    return FakeStore(transactions, categories, accounts)


CATEGORY_BY_DESCRIPTION = {
    "STARBUCKS #123": "Dining Out",
    "SHELL OIL 5744": "Gas",
    "ACME CORP PAYROLL": "Salary",
    "TRADER JOE'S": "Groceries",
}


def scripted_llm(prompt):
    """Answers like a well-behaved model: transfers by description, categories from a table"""
    rows = re.findall(r"^ID: (\S+), .*Description: (.*)$", prompt, flags=re.MULTILINE)
    if "identify inter-account transfers" in prompt:
        return {"suggestions": [
            {"transaction_id": txn_id, "is_transfer": True, "reasoning": "transfer wording"}
            for txn_id, description in rows if "TRANSFER" in description
        ]}
    return {"suggestions": [
        {"transaction_id": txn_id, "category": CATEGORY_BY_DESCRIPTION[description], "confidence": 0.9}
        for txn_id, description in rows if description in CATEGORY_BY_DESCRIPTION
    ]}
