"""
Table geometry for the interactive session
"""
from dataclasses import dataclass
from typing import Iterable


DEFAULT_PAGE_SIZE = 25
MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 50

# Rows taken by header, instructions, table borders, input and status lines
VERTICAL_OVERHEAD = 11
# Fixed date + amount columns (12 each) plus borders and padding
HORIZONTAL_OVERHEAD = 24 + 10

DATE_WIDTH = 12
AMOUNT_WIDTH = 12


@dataclass(frozen=True)
class TableLayout:
    date: int
    account: int
    amount: int
    description: int
    category: int
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def widths(self):
        return (self.date, self.account, self.amount, self.description, self.category)


@dataclass(frozen=True)
class RowText:
    """Display strings of one table row"""
    date: str
    account: str
    amount: str
    description: str
    category: str


def content_layout(rows: Iterable[RowText]) -> TableLayout:
    """
    Column widths derived from the content itself

    Used until the terminal size is known.
    """
    date = 10
    account = len("Account")
    amount = 8
    description = len("Description")
    category = len("Category")

    for row in rows:
        account = max(account, len(row.account))
        amount = max(amount, len(row.amount))
        description = max(description, len(row.description))
        category = max(category, len(row.category))

    return TableLayout(
        date=date + 2,
        account=min(account + 2, 25),
        amount=amount + 2,
        description=min(description + 2, 60),
        category=min(category + 2, 20),
        page_size=DEFAULT_PAGE_SIZE,
    )


def terminal_layout(width: int, height: int) -> TableLayout:
    """
    Column widths and page size apportioned from the terminal size

    Args:
        width: Terminal columns
        height: Terminal rows
    """
    page_size = max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, height - VERTICAL_OVERHEAD))

    remaining = width - HORIZONTAL_OVERHEAD
    account = max(15, remaining * 20 // 100)
    category = max(18, remaining * 25 // 100)
    description = max(30, remaining * 55 // 100)

    return TableLayout(
        date=DATE_WIDTH,
        account=account,
        amount=AMOUNT_WIDTH,
        description=description,
        category=category,
        page_size=page_size,
    )
