"""
Categorization engines: best-match resolution, the LLM batch pipeline and the store interface
"""

from .category_resolver import resolve_category, suggest_categories
from .llm_categorizer import BatchCategorizer
from .categorization_orchestrator import CategorizationOrchestrator, RunSummary, run_automatic_categorization
from .store import TransactionStore, PostgresTransactionStore

__all__ = [
    'resolve_category',
    'suggest_categories',
    'BatchCategorizer',
    'CategorizationOrchestrator',
    'RunSummary',
    'run_automatic_categorization',
    'TransactionStore',
    'PostgresTransactionStore',
]
