"""
LLM Batch Categorizer

Sends transactions to an LLM gateway in batches and collects suggestions.
Features:
- Overlapping windows for transfer identification (pairs split across a
  batch boundary are still seen together)
- Non-overlapping batches for categorization
- Strict JSON parsing with markdown-fence tolerance
- Progress output per batch

Failure policy:
- identify_transfers: any batch failure aborts the whole run
- categorize_transactions: a failing batch is skipped, the rest continue
"""
import json
from typing import Any, Dict, List, Optional, Sequence, Union

from ..errors import GatewayError, ParseError
from .gateway import Gateway
from .models import (
    Account,
    CategorizedExample,
    Category,
    CategoryAnalysisResult,
    CategorySuggestion,
    Transaction,
    TransferAnalysisResult,
    TransferSuggestion,
)
from .prompts import build_categorization_prompt, build_transfer_prompt


def transfer_overlap(batch_size: int) -> int:
    """Number of transactions shared by consecutive transfer windows"""
    return max(2, min(5, batch_size // 5))


def overlapping_windows(items: Sequence, batch_size: int) -> List[Sequence]:
    """
    Split items into windows of batch_size that overlap by transfer_overlap()

    Args:
        items: Ordered items
        batch_size: Window length

    Returns:
        List of slices; consecutive slices share the overlap, the last slice
        reaches the end of items
    """
    if not items:
        return []
    if len(items) <= batch_size:
        return [items]

    step = max(1, batch_size - transfer_overlap(batch_size))
    windows = []
    start = 0
    while True:
        windows.append(items[start:start + batch_size])
        if start + batch_size >= len(items):
            break
        start += step
    return windows


def chunked(items: Sequence, batch_size: int) -> List[Sequence]:
    """Split items into consecutive non-overlapping batches"""
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]


def _strip_code_fence(text: str) -> str:
    # Remove markdown code blocks if present
    if text.startswith('```'):
        lines = text.split('\n')
        lines = lines[1:]
        if lines and lines[-1].strip().startswith('```'):
            lines = lines[:-1]
        text = '\n'.join(lines).strip()
    return text


def _load_suggestions(response_text: str) -> List[Dict[str, Any]]:
    text = _strip_code_fence((response_text or '').strip())
    if not text:
        raise ParseError("LLM response was empty", response_text)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"LLM response not valid JSON: {e}", response_text) from e

    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}", response_text)

    suggestions = payload.get('suggestions')
    if not isinstance(suggestions, list):
        raise ParseError("LLM response is missing a 'suggestions' list", response_text)

    for item in suggestions:
        if not isinstance(item, dict):
            raise ParseError(f"Suggestion is not an object: {item!r}", response_text)
    return suggestions


def _transaction_id(item: Dict[str, Any], response_text: str) -> str:
    txn_id = item.get('transaction_id')
    if isinstance(txn_id, bool) or not isinstance(txn_id, (str, int)) or str(txn_id) == '':
        raise ParseError(f"Suggestion has no valid transaction_id: {item!r}", response_text)
    return str(txn_id)


def _reasoning(item: Dict[str, Any]) -> str:
    reasoning = item.get('reasoning')
    return reasoning if isinstance(reasoning, str) else ''


def parse_transfer_response(response_text: str) -> TransferAnalysisResult:
    """
    Parse a response against the TransferAnalysisResult schema

    Raises:
        ParseError: If the response is not JSON of the expected shape
    """
    result = TransferAnalysisResult()
    for item in _load_suggestions(response_text):
        is_transfer = item.get('is_transfer')
        if not isinstance(is_transfer, bool):
            raise ParseError(f"Suggestion has no boolean is_transfer: {item!r}", response_text)
        result.suggestions.append(TransferSuggestion(
            transaction_id=_transaction_id(item, response_text),
            is_transfer=is_transfer,
            reasoning=_reasoning(item),
        ))
    return result


def parse_category_response(response_text: str) -> CategoryAnalysisResult:
    """
    Parse a response against the CategoryAnalysisResult schema

    Raises:
        ParseError: If the response is not JSON of the expected shape
    """
    result = CategoryAnalysisResult()
    for item in _load_suggestions(response_text):
        category = item.get('category')
        if not isinstance(category, str) or not category.strip():
            raise ParseError(f"Suggestion has no category: {item!r}", response_text)

        confidence = item.get('confidence')
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ParseError(f"Suggestion has no numeric confidence: {item!r}", response_text)

        result.suggestions.append(CategorySuggestion(
            transaction_id=_transaction_id(item, response_text),
            category=category.strip(),
            confidence=max(0.0, min(1.0, float(confidence))),
            reasoning=_reasoning(item),
        ))
    return result


class BatchCategorizer:
    """
    Categorizes transactions and identifies transfers through an LLM gateway
    """

    def __init__(self, gateway: Gateway, batch_size: int = 50, verbose: bool = True):
        """
        Args:
            gateway: Object with run(prompt) -> str
            batch_size: Transactions per LLM call
            verbose: Print per-batch progress
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.gateway = gateway
        self.batch_size = batch_size
        self.verbose = verbose

    def _say(self, message: str, **kwargs):
        if self.verbose:
            print(message, **kwargs)

    def identify_transfers(self,
                           transactions: Sequence[Transaction],
                           accounts: Sequence[Account]) -> TransferAnalysisResult:
        """
        Ask the LLM which transactions are transfers between the user's accounts

        Args:
            transactions: Transactions to analyze, in display order
            accounts: All accounts (gives the model account names and types)

        Returns:
            TransferAnalysisResult with at most one suggestion per transaction

        Raises:
            GatewayError, ParseError: On any batch failure (nothing is returned)
        """
        windows = overlapping_windows(list(transactions), self.batch_size)
        if not windows:
            return TransferAnalysisResult()

        total = len(windows)
        if total > 1:
            self._say(f"   📦 Analyzing {len(transactions)} transactions in {total} overlapping batches "
                      f"(overlap {transfer_overlap(self.batch_size)})...")

        merged = TransferAnalysisResult()
        seen = set()

        for num, window in enumerate(windows, 1):
            if total > 1:
                self._say(f"   🔄 Batch {num}/{total} ({len(window)} transactions)...", end='', flush=True)

            try:
                response = self.gateway.run(build_transfer_prompt(window, accounts))
                batch_result = parse_transfer_response(response)
            except (GatewayError, ParseError) as e:
                if total > 1:
                    self._say(" ❌")
                self._say(f"   ❌ Transfer identification failed on batch {num}/{total}: {e}")
                raise

            added = 0
            for suggestion in batch_result.suggestions:
                if suggestion.transaction_id in seen:
                    continue
                seen.add(suggestion.transaction_id)
                merged.suggestions.append(suggestion)
                added += 1

            if total > 1:
                self._say(f" ✅ {added} new suggestions")

        return merged

    def categorize_transactions(self,
                                transactions: Sequence[Transaction],
                                categories: Sequence[Union[Category, str]],
                                accounts: Optional[Sequence[Account]] = None,
                                examples: Optional[Sequence[CategorizedExample]] = None) -> CategoryAnalysisResult:
        """
        Ask the LLM to assign one of the given categories to each transaction

        Args:
            transactions: Transactions to categorize
            categories: Available categories (objects or names)
            accounts: Optional account metadata for context
            examples: Optional prior categorizations for few-shot guidance

        Returns:
            CategoryAnalysisResult; batches that failed are counted in
            batches_skipped and contribute no suggestions
        """
        batches = chunked(list(transactions), self.batch_size)
        if not batches:
            return CategoryAnalysisResult()

        total = len(batches)
        if total > 1:
            self._say(f"   📦 Processing {len(transactions)} transactions in {total} batches...")

        result = CategoryAnalysisResult()

        for num, batch in enumerate(batches, 1):
            self._say(f"   🔄 Batch {num}/{total} ({len(batch)} transactions)...", end='', flush=True)

            try:
                prompt = build_categorization_prompt(batch, categories, accounts, examples)
                batch_result = parse_category_response(self.gateway.run(prompt))
            except (GatewayError, ParseError) as e:
                self._say(" ⚠️  skipped")
                self._say(f"   ⚠️  Batch {num}/{total} failed, continuing: {e}")
                result.batches_skipped += 1
                continue

            result.suggestions.extend(batch_result.suggestions)
            self._say(f" ✅ {len(batch_result.suggestions)}/{len(batch)} suggested")

        return result
