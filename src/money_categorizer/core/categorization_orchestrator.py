"""
Categorization Orchestrator

The automatic pipeline:
1. Fetch transactions (uncategorized only, or all)
2. Identify transfers with the LLM and flag them
3. Re-fetch the remaining non-transfer transactions
4. Categorize them with the LLM and apply the suggestions

Re-running converges: flags and categories are overwritten, never stacked.
"""
from dataclasses import dataclass
from typing import List

from .llm_categorizer import BatchCategorizer
from .models import Transaction
from .store import TransactionStore


SCOPE_UNCATEGORIZED = 'uncategorized'
SCOPE_ALL = 'all'
SCOPES = (SCOPE_UNCATEGORIZED, SCOPE_ALL)


@dataclass
class RunSummary:
    """Counts reported at the end of an automatic run"""
    transactions_considered: int = 0
    transfers_marked: int = 0
    transactions_categorized: int = 0
    batches_skipped: int = 0


class CategorizationOrchestrator:
    """
    Runs transfer identification then categorization against a store
    """

    def __init__(self,
                 store: TransactionStore,
                 categorizer: BatchCategorizer,
                 example_limit: int = 10,
                 verbose: bool = True):
        """
        Args:
            store: Where transactions are read from and written to
            categorizer: LLM batch categorizer
            example_limit: Prior categorized transactions to include as prompt examples
            verbose: Print progress
        """
        self.store = store
        self.categorizer = categorizer
        self.example_limit = example_limit
        self.verbose = verbose
        self.stats = RunSummary()

    def _say(self, message: str):
        if self.verbose:
            print(message)

    def _fetch(self, scope: str) -> List[Transaction]:
        if scope == SCOPE_ALL:
            return self.store.list_transactions()
        return self.store.list_uncategorized()

    def _remaining(self, scope: str) -> List[Transaction]:
        if scope == SCOPE_ALL:
            return [t for t in self.store.list_transactions() if not t.is_transfer]
        return self.store.list_uncategorized()

    def mark_transfers(self, transactions: List[Transaction], accounts) -> int:
        """Identify transfers and flag them; returns how many were flagged"""
        self._say(f"\n🔁 Looking for transfers between your accounts...")
        result = self.categorizer.identify_transfers(transactions, accounts)

        known = {t.id: t for t in transactions}
        marked = 0
        for suggestion in result.suggestions:
            if not suggestion.is_transfer or suggestion.transaction_id not in known:
                continue
            self.store.set_transfer_flag(suggestion.transaction_id)
            self._say(f"   🔁 {known[suggestion.transaction_id].description}")
            marked += 1

        self._say(f"   ✅ Marked {marked} transfers")
        return marked

    def categorize(self, transactions: List[Transaction], accounts) -> int:
        """Categorize transactions and write the assignments; returns how many were applied"""
        categories = self.store.list_categories()
        if not categories:
            self._say("⚠️  No categories found. Run 'money-categories seed' to create default "
                      "categories, or add your own with 'money-categories add <name>'.")
            return 0

        regular = [c.name for c in categories if not c.is_internal]
        internal = [c.name for c in categories if c.is_internal]
        self._say(f"\n📚 Using {len(categories)} categories: {len(regular)} regular + {len(internal)} internal")

        examples = self.store.list_categorized_examples(self.example_limit) if self.example_limit else []
        if examples:
            self._say(f"   📚 Using {len(examples)} examples from previously categorized transactions")

        self._say(f"📝 Categorizing {len(transactions)} transactions...")
        result = self.categorizer.categorize_transactions(transactions, categories, accounts, examples)
        self.stats.batches_skipped += result.batches_skipped

        known = {t.id: t for t in transactions}
        applied = set()
        for suggestion in result.suggestions:
            txn = known.get(suggestion.transaction_id)
            # First suggestion wins when the model repeats an id
            if txn is None or txn.id in applied:
                continue
            category_id = self.store.get_or_create_category(suggestion.category)
            self.store.set_category(txn.id, category_id)
            self._say(f"   💸 {txn.description} → {suggestion.category} ({suggestion.confidence:.0%})")
            applied.add(txn.id)

        return len(applied)

    def run(self, scope: str = SCOPE_UNCATEGORIZED) -> RunSummary:
        """
        Run the full pipeline

        Args:
            scope: 'uncategorized' or 'all'

        Returns:
            RunSummary with final counts

        Raises:
            StoreError: On any store failure
            GatewayError, ParseError: If transfer identification fails
        """
        if scope not in SCOPES:
            raise ValueError(f"Unknown scope: {scope}")

        self.stats = RunSummary()

        transactions = self._fetch(scope)
        self.stats.transactions_considered = len(transactions)
        if not transactions:
            self._say("No uncategorized transactions found." if scope == SCOPE_UNCATEGORIZED
                      else "No transactions found.")
            return self.stats

        self._say(f"Found {len(transactions)} transactions.")
        accounts = self.store.list_accounts()

        self.stats.transfers_marked = self.mark_transfers(transactions, accounts)

        remaining = self._remaining(scope)
        if remaining:
            self.stats.transactions_categorized = self.categorize(remaining, accounts)
        else:
            self._say("Nothing left to categorize.")

        return self.stats

    def print_stats(self):
        """Print run statistics"""
        stats = self.stats
        print("\n" + "=" * 80)
        print("🎉 AUTO-CATEGORIZATION COMPLETE")
        print("=" * 80)
        print(f"Transactions considered: {stats.transactions_considered}")
        print(f"  • Transfers marked:        {stats.transfers_marked}")
        print(f"  • Transactions categorized: {stats.transactions_categorized}")
        if stats.batches_skipped:
            print(f"  • ⚠️  Batches skipped:      {stats.batches_skipped}")
        print("=" * 80)


def run_automatic_categorization(store: TransactionStore,
                                 gateway,
                                 scope: str = SCOPE_UNCATEGORIZED,
                                 batch_size: int = 50,
                                 example_limit: int = 10,
                                 verbose: bool = True) -> RunSummary:
    """Build the pipeline around a gateway, run it and print the summary"""
    categorizer = BatchCategorizer(gateway, batch_size=batch_size, verbose=verbose)
    orchestrator = CategorizationOrchestrator(store, categorizer, example_limit=example_limit, verbose=verbose)
    summary = orchestrator.run(scope)
    if verbose:
        orchestrator.print_stats()
    return summary
