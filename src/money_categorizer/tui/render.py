"""
Rendering for the interactive session

render() is a pure function of SessionState and Theme that returns
prompt_toolkit formatted text; nothing here touches the terminal or store.
"""
from dataclasses import dataclass
from typing import List, Tuple

from prompt_toolkit.formatted_text import FormattedText, fragment_list_to_text

from ..core.category_resolver import suggest_categories
from ..core.models import Transaction
from .layout import RowText, TableLayout, content_layout
from .state import (
    InputEdit,
    Search,
    SessionState,
    VisualSelect,
    account_label,
    category_for,
    category_label,
)


@dataclass(frozen=True)
class Theme:
    """prompt_toolkit style strings for each visual element"""
    header: str = 'bold fg:#00d7ff'
    instructions: str = 'fg:#888888'
    border: str = 'fg:#00d7ff'
    column_title: str = 'bold'
    cursor_row: str = 'bg:#555555'
    cursor_row_visual: str = 'bg:#666666'
    selected_row: str = 'bold fg:#ffffff bg:#555555'
    expense: str = 'fg:#ff6644'
    income: str = 'fg:#88cc88'
    uncategorized: str = 'fg:#ff6644'
    internal: str = 'fg:#888888'
    categorized: str = 'fg:#88cc88'
    input_line: str = 'fg:#00d7ff bg:#333333'
    suggestions: str = 'fg:#888888'
    status: str = 'fg:#ffff00'
    empty: str = 'fg:#88cc88'
    page_info: str = 'fg:#888888'


DEFAULT_THEME = Theme()

COLUMN_TITLES = ("Date", "Account", "Amount", "Description", "Category")

NORMAL_HELP = "Navigation: j/k or ↑↓  |  e: categorize  |  u: uncategorize  |  v: visual mode  |  /: search  |  n/N: next/prev match  |  q: quit"
VISUAL_HELP = "VISUAL MODE ({count} selected)  |  j/k: extend selection  |  e: bulk categorize  |  u: bulk uncategorize  |  v/Esc: exit"
SEARCH_HELP = "SEARCH  |  type to search  |  Enter: find  |  Esc: cancel"
INPUT_HELP = "CATEGORIZE  |  type a category name  |  Enter: apply best match  |  Esc: cancel"


def row_text(state: SessionState, txn: Transaction) -> RowText:
    return RowText(
        date=txn.posted[:10],
        account=account_label(state, txn),
        amount=f"{'-' if txn.amount < 0 else ''}${abs(txn.amount) / 100.0:.2f}",
        description=txn.description,
        category=category_label(state, txn),
    )


def effective_layout(state: SessionState) -> TableLayout:
    if state.layout is not None:
        return state.layout
    return content_layout(row_text(state, txn) for txn in state.transactions)


def fit(text: str, width: int, align_right: bool = False) -> str:
    """Truncate with an ellipsis and pad to exactly width characters"""
    inner = max(width - 2, 1)
    if len(text) > inner:
        text = text[:inner - 1] + '…' if inner > 1 else text[:inner]
    text = text.rjust(inner) if align_right else text.ljust(inner)
    return f" {text} "


def page_bounds(state: SessionState, page_size: int) -> Tuple[int, int]:
    start = (state.cursor // page_size) * page_size
    return start, min(start + page_size, len(state.transactions))


def _border(widths, left: str, mid: str, right: str) -> str:
    return left + mid.join('─' * w for w in widths) + right


def _row_style(state: SessionState, theme: Theme, index: int) -> str:
    if index in state.selection:
        return theme.selected_row
    if index == state.cursor:
        return theme.cursor_row_visual if isinstance(state.mode, VisualSelect) else theme.cursor_row
    return ''


def render_table(state: SessionState, theme: Theme = DEFAULT_THEME) -> List[Tuple[str, str]]:
    layout = effective_layout(state)
    widths = layout.widths
    fragments = []

    fragments.append((theme.border, _border(widths, '╭', '┬', '╮') + '\n'))
    fragments.append((theme.border, '│'))
    for title, width in zip(COLUMN_TITLES, widths):
        fragments.append((theme.column_title, fit(title, width)))
        fragments.append((theme.border, '│'))
    fragments.append(('', '\n'))
    fragments.append((theme.border, _border(widths, '├', '┼', '┤') + '\n'))

    start, end = page_bounds(state, layout.page_size)
    for index in range(start, end):
        txn = state.transactions[index]
        text = row_text(state, txn)
        base = _row_style(state, theme, index)

        if txn.amount < 0:
            amount_style = theme.expense
        elif txn.amount > 0:
            amount_style = theme.income
        else:
            amount_style = ''

        cat = category_for(state, txn)
        if cat is None:
            category_style = theme.uncategorized
        elif cat.is_internal:
            category_style = theme.internal
        else:
            category_style = theme.categorized

        cells = [
            (base, fit(text.date, layout.date)),
            (base, fit(text.account, layout.account)),
            (f"{base} {amount_style}".strip(), fit(text.amount, layout.amount, align_right=True)),
            (base, fit(text.description, layout.description)),
            (f"{base} {category_style}".strip(), fit(text.category, layout.category)),
        ]
        fragments.append((theme.border, '│'))
        for style, cell in cells:
            fragments.append((style, cell))
            fragments.append((theme.border, '│'))
        fragments.append(('', '\n'))

    fragments.append((theme.border, _border(widths, '╰', '┴', '╯') + '\n'))

    pages = max(1, -(-len(state.transactions) // layout.page_size))
    current_page = state.cursor // layout.page_size + 1
    fragments.append((theme.page_info, f"Page {current_page}/{pages}  ·  {len(state.transactions)} transactions\n"))
    return fragments


def render(state: SessionState, theme: Theme = DEFAULT_THEME) -> FormattedText:
    """
    Build the full screen for the given state

    Args:
        state: Session state snapshot
        theme: Styles to apply

    Returns:
        prompt_toolkit FormattedText
    """
    mode = state.mode
    fragments = [(theme.header, "Manual Transaction Categorization\n")]

    if isinstance(mode, VisualSelect):
        help_line = VISUAL_HELP.format(count=len(state.selection))
    elif isinstance(mode, Search):
        help_line = SEARCH_HELP
    elif isinstance(mode, InputEdit):
        help_line = INPUT_HELP
    else:
        help_line = NORMAL_HELP
    fragments.append((theme.instructions, help_line + "\n\n"))

    if state.transactions:
        fragments.extend(render_table(state, theme))
    else:
        fragments.append((theme.empty, "✅ No transactions found!\n"))

    if isinstance(mode, InputEdit):
        fragments.append(('', '\n'))
        fragments.append((theme.input_line, f"Category: {mode.buffer}_"))
        matching = suggest_categories(mode.buffer, state.categories, limit=5)
        if matching:
            fragments.append(('', '\n'))
            fragments.append((theme.suggestions, "Suggestions: " + ", ".join(matching)))
        fragments.append(('', '\n'))
    elif isinstance(mode, Search):
        fragments.append(('', '\n'))
        fragments.append((theme.input_line, f"/{mode.buffer}_"))
        fragments.append(('', '\n'))

    fragments.append(('', '\n'))
    fragments.append((theme.status, state.message))

    return FormattedText(fragments)


def render_text(state: SessionState, theme: Theme = DEFAULT_THEME) -> str:
    """Plain-text version of render(), without styles"""
    return fragment_list_to_text(render(state, theme))
