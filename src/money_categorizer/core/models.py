"""
Data structures shared by the batch pipeline and the interactive session
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Transaction:
    """Transaction data structure"""
    id: str
    account_id: str
    posted: str
    amount: int  # cents, negative for expenses
    description: str
    pending: bool = False
    is_transfer: bool = False
    category_id: Optional[int] = None

    @property
    def amount_dollars(self) -> float:
        return self.amount / 100.0

    @property
    def is_categorized(self) -> bool:
        return self.category_id is not None


@dataclass
class Category:
    """Category data structure"""
    id: int
    name: str
    is_internal: bool = False


@dataclass
class Account:
    """Account data structure"""
    id: str
    name: str
    nickname: Optional[str] = None
    account_type: Optional[str] = None

    @property
    def display_name(self) -> str:
        """Nickname if set, otherwise the institution's name"""
        return self.nickname or self.name


@dataclass
class CategorizedExample:
    """A previously categorized transaction used as prompt guidance"""
    description: str
    amount: int
    category: str


@dataclass
class TransferSuggestion:
    transaction_id: str
    is_transfer: bool
    reasoning: str = ''


@dataclass
class CategorySuggestion:
    transaction_id: str
    category: str
    confidence: float
    reasoning: str = ''


@dataclass
class TransferAnalysisResult:
    suggestions: List[TransferSuggestion] = field(default_factory=list)


@dataclass
class CategoryAnalysisResult:
    suggestions: List[CategorySuggestion] = field(default_factory=list)
    batches_skipped: int = 0


def format_amount(amount: int) -> str:
    """Format cents as a plain decimal string (e.g. -1234 -> '-12.34')"""
    return f"{amount / 100.0:.2f}"
