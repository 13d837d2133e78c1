"""
Prompt builders for transfer identification and categorization
"""
from typing import List, Optional, Sequence, Union

from .models import Account, CategorizedExample, Category, Transaction


JSON_ONLY = (
    "CRITICAL: Return ONLY valid JSON with no additional text, explanations, "
    "or formatting. Do not include markdown code blocks or any other text."
)


def _account_lines(accounts: Sequence[Account]) -> List[str]:
    lines = []
    for account in accounts:
        account_type = account.account_type or 'unknown'
        lines.append(f"- {account.id} ({account.display_name}) - Type: {account_type}")
    return lines


def _transaction_lines(transactions: Sequence[Transaction]) -> List[str]:
    lines = []
    for tx in transactions:
        pending = " (pending)" if tx.pending else ""
        lines.append(
            f"ID: {tx.id}, Account: {tx.account_id}, Date: {tx.posted}, "
            f"Amount: ${tx.amount_dollars:.2f}, Description: {tx.description}{pending}"
        )
    return lines


def build_transfer_prompt(transactions: Sequence[Transaction], accounts: Sequence[Account]) -> str:
    """Prompt asking the model to flag inter-account transfers"""
    account_block = '\n'.join(_account_lines(accounts)) or '- (no account metadata)'
    txn_block = '\n'.join(_transaction_lines(transactions))

    return f"""You are a financial transaction analyzer. Your task is to identify inter-account transfers from the following transactions.

An inter-account transfer moves money between the user's own accounts. Strong signals:
1. A pair of transactions on DIFFERENT accounts with opposite-sign amounts of the same size, a few days apart
2. Descriptions explicitly mentioning "transfer", "xfer", "deposit from", "withdrawal to", or a credit card payment from checking

ACCOUNTS:
{account_block}

TRANSACTIONS:
{txn_block}

{JSON_ONLY}

Expected JSON format:
{{
  "suggestions": [
    {{
      "transaction_id": "tx_id_here",
      "is_transfer": true,
      "reasoning": "Brief explanation"
    }}
  ]
}}

Rules:
- Only include transactions that are unambiguous transfers (a matched opposite-sign pair, or explicit transfer language)
- Be conservative - omit anything uncertain; it is better to miss a transfer than to mark a purchase or paycheck as one
- Use the exact transaction IDs shown above

Return ONLY the JSON object above with no additional text:"""


def build_categorization_prompt(transactions: Sequence[Transaction],
                                categories: Sequence[Union[Category, str]],
                                accounts: Optional[Sequence[Account]] = None,
                                examples: Optional[Sequence[CategorizedExample]] = None) -> str:
    """
    Prompt asking the model to pick one of the given categories per transaction

    Args:
        transactions: Transactions to categorize
        categories: Category objects (split into regular/internal) or plain names
        accounts: Optional account metadata for context
        examples: Optional previously categorized transactions (few-shot guidance)
    """
    regular = []
    internal = []
    for cat in categories:
        if isinstance(cat, Category):
            (internal if cat.is_internal else regular).append(cat.name)
        else:
            regular.append(cat)

    sections = [
        "You are a financial transaction categorizer. Your task is to categorize the "
        "following transactions using only the provided categories.",
        "",
        "AVAILABLE CATEGORIES:",
    ]
    sections.extend(f"- {name}" for name in regular)

    if internal:
        sections.append("")
        sections.append("INTERNAL CATEGORIES (transfers, card payments and adjustments between the user's own accounts):")
        sections.extend(f"- {name}" for name in internal)

    if accounts:
        sections.append("")
        sections.append("ACCOUNTS:")
        sections.extend(_account_lines(accounts))

    if examples:
        sections.append("")
        sections.append("EXAMPLES OF HOW THIS USER CATEGORIZES:")
        for ex in examples:
            sections.append(f"- {ex.description} (${ex.amount / 100.0:.2f}) -> {ex.category}")

    sections.append("")
    sections.append("TRANSACTIONS TO CATEGORIZE:")
    sections.extend(_transaction_lines(transactions))

    sections.append(f"""
Please categorize each transaction using ONLY the category names listed above, spelled exactly as shown. Consider:
1. Transaction description and merchant names
2. Transaction amounts (positive = income, negative = expense)
3. The user's own examples, when given

{JSON_ONLY}

Expected JSON format:
{{
  "suggestions": [
    {{
      "transaction_id": "tx_id_here",
      "category": "Category Name",
      "confidence": 0.85,
      "reasoning": "Brief explanation of categorization choice"
    }}
  ]
}}

Use confidence scores from 0.0 to 1.0 where:
- 0.8+ = Very confident (obvious categorization)
- 0.6-0.8 = Moderately confident (good match based on description)
- 0.4-0.6 = Low confidence (best guess from available categories)
- Below 0.4 = Don't suggest a category

Return ONLY the JSON object above with no additional text:""")

    return '\n'.join(sections)
