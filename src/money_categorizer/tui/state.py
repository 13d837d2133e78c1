"""
Interactive categorization state machine

The session is a pure function of (state, event) -> (state, effect).
Modes are a tagged variant: one frozen dataclass per mode, each carrying
only the data that mode needs. Effects describe store mutations; the
controller in session.py executes them and reloads.

Key names understood here: single printable characters, plus
'enter', 'esc', 'backspace', 'up', 'down', 'pageup', 'pagedown',
'home', 'end' and 'ctrl+c'.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Dict, FrozenSet, Optional, Sequence, Tuple, Union

from ..core.category_resolver import resolve_category
from ..core.models import Category, Transaction, format_amount
from .layout import DEFAULT_PAGE_SIZE, TableLayout, terminal_layout


UNCATEGORIZED = "Uncategorized"

# End the session from every mode
QUIT_KEYS = ('q', 'ctrl+c')


class ModeKind(Enum):
    NORMAL = 'normal'
    VISUAL_SELECT = 'visual'
    SEARCH = 'search'
    INPUT_EDIT = 'input'


@dataclass(frozen=True)
class Normal:
    kind: ClassVar[ModeKind] = ModeKind.NORMAL


@dataclass(frozen=True)
class VisualSelect:
    anchor: int
    kind: ClassVar[ModeKind] = ModeKind.VISUAL_SELECT


@dataclass(frozen=True)
class Search:
    buffer: str = ''
    kind: ClassVar[ModeKind] = ModeKind.SEARCH


@dataclass(frozen=True)
class InputEdit:
    targets: Tuple[str, ...]
    buffer: str = ''
    kind: ClassVar[ModeKind] = ModeKind.INPUT_EDIT


Mode = Union[Normal, VisualSelect, Search, InputEdit]


# Events

@dataclass(frozen=True)
class Key:
    name: str


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


Event = Union[Key, Resize]


# Effects

@dataclass(frozen=True)
class ApplyCategory:
    transaction_ids: Tuple[str, ...]
    category: Category


@dataclass(frozen=True)
class ClearCategorization:
    """Remove category and transfer flag"""
    transaction_ids: Tuple[str, ...]


@dataclass(frozen=True)
class Quit:
    pass


Effect = Union[ApplyCategory, ClearCategorization, Quit]


@dataclass(frozen=True)
class SessionState:
    transactions: Tuple[Transaction, ...] = ()
    categories: Tuple[Category, ...] = ()
    account_names: Dict[str, str] = field(default_factory=dict)
    mode: Mode = Normal()
    cursor: int = 0
    selection: FrozenSet[int] = frozenset()
    search_term: str = ''
    matches: Tuple[int, ...] = ()
    match_index: int = 0
    message: str = ''
    layout: Optional[TableLayout] = None

    @property
    def page_size(self) -> int:
        return self.layout.page_size if self.layout else DEFAULT_PAGE_SIZE

    @property
    def current(self) -> Optional[Transaction]:
        if 0 <= self.cursor < len(self.transactions):
            return self.transactions[self.cursor]
        return None


def new_state(transactions: Sequence[Transaction],
              categories: Sequence[Category],
              account_names: Dict[str, str]) -> SessionState:
    return SessionState(
        transactions=tuple(transactions),
        categories=tuple(categories),
        account_names=dict(account_names),
        message=f"Found {len(transactions)} transactions. Use j/k to navigate, e to categorize, q to quit.",
    )


def account_label(state: SessionState, txn: Transaction) -> str:
    return state.account_names.get(txn.account_id, txn.account_id)


def category_for(state: SessionState, txn: Transaction) -> Optional[Category]:
    if txn.category_id is None:
        return None
    for cat in state.categories:
        if cat.id == txn.category_id:
            return cat
    return None


def category_label(state: SessionState, txn: Transaction) -> str:
    cat = category_for(state, txn)
    if cat is None:
        return UNCATEGORIZED
    if cat.is_internal:
        return f"{cat.name} (internal)"
    return cat.name


def transaction_matches(state: SessionState, txn: Transaction, term: str) -> bool:
    """Case-insensitive substring test over description, account, category and amount"""
    term = term.lower()
    cat = category_for(state, txn)
    fields = [
        txn.description,
        account_label(state, txn),
        cat.name if cat else '',
        format_amount(txn.amount),
    ]
    return any(term in value.lower() for value in fields)


def find_matches(state: SessionState, term: str) -> Tuple[int, ...]:
    if not term:
        return ()
    return tuple(i for i, txn in enumerate(state.transactions) if transaction_matches(state, txn, term))


def selection_range(anchor: int, cursor: int, count: int) -> FrozenSet[int]:
    """Indices between anchor and cursor inclusive, limited to the list"""
    start, end = min(anchor, cursor), max(anchor, cursor)
    return frozenset(i for i in range(start, end + 1) if 0 <= i < count)


def _clamp(index: int, count: int) -> int:
    if count == 0:
        return 0
    return max(0, min(count - 1, index))


def _moved_cursor(state: SessionState, key: str) -> Optional[int]:
    count = len(state.transactions)
    moves = {
        'j': 1, 'down': 1,
        'k': -1, 'up': -1,
        'pagedown': state.page_size,
        'pageup': -state.page_size,
    }
    if key in moves:
        return _clamp(state.cursor + moves[key], count)
    if key in ('g', 'home'):
        return 0
    if key in ('G', 'end'):
        return _clamp(count - 1, count)
    return None


def _is_char(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


def _edit_buffer(buffer: str, key: str) -> Optional[str]:
    if key == 'backspace':
        return buffer[:-1]
    if _is_char(key):
        return buffer + key
    return None


def _jump_to_match(state: SessionState, match_index: int) -> SessionState:
    return replace(
        state,
        match_index=match_index,
        cursor=state.matches[match_index],
        message=f"Match {match_index + 1} of {len(state.matches)}",
    )


def _start_search(state: SessionState) -> SessionState:
    return replace(
        state,
        mode=Search(),
        selection=frozenset(),
        message="Search: (press Enter to search, Esc to cancel)",
    )


def _start_input(state: SessionState, targets: Tuple[str, ...]) -> SessionState:
    if len(targets) == 1:
        txn = next(t for t in state.transactions if t.id == targets[0])
        message = f"Enter category for: {txn.description} (or press Esc to cancel)"
    else:
        message = f"Enter category for {len(targets)} transactions (or press Esc to cancel)"
    return replace(state, mode=InputEdit(targets=targets), message=message)


def _normal(state: SessionState, key: str) -> Tuple[SessionState, Optional[Effect]]:
    cursor = _moved_cursor(state, key)
    if cursor is not None:
        return replace(state, cursor=cursor), None

    txn = state.current

    if key == 'v':
        if txn is None:
            return state, None
        return replace(
            state,
            mode=VisualSelect(anchor=state.cursor),
            selection=frozenset({state.cursor}),
            message="Visual mode - use j/k to select range, e to categorize, u to uncategorize",
        ), None

    if key == 'e':
        if txn is None:
            return state, None
        return _start_input(state, (txn.id,)), None

    if key == 'u':
        if txn is None:
            return state, None
        return replace(state, message=f"Uncategorized '{txn.description}'"), ClearCategorization((txn.id,))

    if key == '/':
        return _start_search(state), None

    if key in ('n', 'N'):
        if not state.matches:
            return replace(state, message="No search results"), None
        step = 1 if key == 'n' else -1
        return _jump_to_match(state, (state.match_index + step) % len(state.matches)), None

    return state, None


def _visual(state: SessionState, mode: VisualSelect, key: str) -> Tuple[SessionState, Optional[Effect]]:
    cursor = _moved_cursor(state, key)
    if cursor is not None:
        selection = selection_range(mode.anchor, cursor, len(state.transactions))
        noun = "row" if len(selection) == 1 else "rows"
        return replace(
            state,
            cursor=cursor,
            selection=selection,
            message=f"Visual mode: {len(selection)} {noun} selected",
        ), None

    if key in ('esc', 'v'):
        return replace(state, mode=Normal(), selection=frozenset(), message="Visual mode cancelled"), None

    targets = tuple(state.transactions[i].id for i in sorted(state.selection))

    if key == 'e':
        if not targets:
            return state, None
        return _start_input(state, targets), None

    if key == 'u':
        if not targets:
            return state, None
        return replace(
            state,
            mode=Normal(),
            selection=frozenset(),
            message=f"Uncategorized {len(targets)} transactions",
        ), ClearCategorization(targets)

    if key == '/':
        return _start_search(state), None

    return state, None


def _search(state: SessionState, mode: Search, key: str) -> Tuple[SessionState, Optional[Effect]]:
    if key == 'esc':
        return replace(state, mode=Normal(), message="Search cancelled"), None

    if key == 'enter':
        term = mode.buffer
        if not term:
            return replace(state, mode=Normal(), message=""), None
        matches = find_matches(state, term)
        state = replace(state, mode=Normal(), search_term=term, matches=matches, match_index=0)
        if not matches:
            return replace(state, message=f"No matches found for '{term}'"), None
        state = _jump_to_match(state, 0)
        return replace(state, message=f"Found {len(matches)} matches (n/N to navigate)"), None

    buffer = _edit_buffer(mode.buffer, key)
    if buffer is None:
        return state, None
    return replace(state, mode=Search(buffer=buffer), message=f"Search: {buffer}"), None


def _input(state: SessionState, mode: InputEdit, key: str) -> Tuple[SessionState, Optional[Effect]]:
    if key == 'esc':
        return replace(state, mode=Normal(), selection=frozenset(), message="Categorization cancelled"), None

    if key == 'enter':
        if not mode.buffer.strip():
            return replace(state, message="Type a category name (Enter to apply, Esc to cancel)"), None

        category = resolve_category(mode.buffer, state.categories)
        if category is None:
            return replace(state, message=f"No matching category found for '{mode.buffer}'"), None

        if len(mode.targets) == 1:
            txn = next(t for t in state.transactions if t.id == mode.targets[0])
            message = f"Categorized '{txn.description}' as '{category.name}'"
        else:
            message = f"Categorized {len(mode.targets)} transactions as '{category.name}'"

        return replace(
            state,
            mode=Normal(),
            selection=frozenset(),
            message=message,
        ), ApplyCategory(mode.targets, category)

    buffer = _edit_buffer(mode.buffer, key)
    if buffer is None:
        return state, None
    return replace(state, mode=InputEdit(targets=mode.targets, buffer=buffer)), None


def transition(state: SessionState, event: Event) -> Tuple[SessionState, Optional[Effect]]:
    """
    Apply one event to the state

    Returns:
        (new state, effect to execute or None)
    """
    if isinstance(event, Resize):
        # Layout is fixed on the first observed size only
        if state.layout is not None:
            return state, None
        return replace(state, layout=terminal_layout(event.width, event.height)), None

    key = event.name
    if key in QUIT_KEYS:
        return state, Quit()

    mode = state.mode
    if isinstance(mode, VisualSelect):
        return _visual(state, mode, key)
    if isinstance(mode, Search):
        return _search(state, mode, key)
    if isinstance(mode, InputEdit):
        return _input(state, mode, key)
    return _normal(state, key)


def reload(state: SessionState,
           transactions: Sequence[Transaction],
           categories: Sequence[Category],
           account_names: Optional[Dict[str, str]] = None) -> SessionState:
    """
    Swap in freshly read data, keeping position by index

    Cursor is clamped to the new list, and an active search is re-run so
    match indices refer to the new list.
    """
    state = replace(
        state,
        transactions=tuple(transactions),
        categories=tuple(categories),
        account_names=dict(account_names) if account_names is not None else state.account_names,
    )
    count = len(state.transactions)
    matches = find_matches(state, state.search_term)
    return replace(
        state,
        cursor=_clamp(state.cursor, count),
        selection=frozenset(i for i in state.selection if i < count),
        matches=matches,
        match_index=min(state.match_index, max(len(matches) - 1, 0)),
    )
