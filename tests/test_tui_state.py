from money_categorizer.core.models import Category
from money_categorizer.tui.layout import TableLayout
from money_categorizer.tui.state import (
    ApplyCategory,
    ClearCategorization,
    InputEdit,
    Key,
    ModeKind,
    Normal,
    Quit,
    Resize,
    Search,
    VisualSelect,
    category_label,
    new_state,
    reload,
    selection_range,
    transition,
)

from conftest import make_txn


CATEGORIES = [
    Category(id=1, name="Groceries"),
    Category(id=2, name="Gas"),
    Category(id=3, name="Dining"),
    Category(id=4, name="Transfer", is_internal=True),
]


def _state(n=10):
    txns = [make_txn(f"t{i}", f"Purchase {i}") for i in range(n)]
    return new_state(txns, CATEGORIES, {"chk": "Checking"})


def press(state, *keys):
    """Feed keys one at a time, returning the final state and the last effect"""
    effect = None
    for key in keys:
        state, effect = transition(state, Key(key))
    return state, effect


# Normal mode

def test_initial_state():
    state = _state()
    assert isinstance(state.mode, Normal)
    assert state.mode.kind is ModeKind.NORMAL
    assert state.cursor == 0
    assert state.message.startswith("Found 10 transactions")


def test_cursor_movement_is_clamped():
    state = _state(5)
    assert press(state, 'k')[0].cursor == 0
    assert press(state, 'j', 'j', 'down')[0].cursor == 3
    assert press(state, 'G')[0].cursor == 4
    assert press(state, 'G', 'j')[0].cursor == 4
    assert press(state, 'G', 'g')[0].cursor == 0
    assert press(state, 'pagedown')[0].cursor == 4
    assert press(state, 'G', 'up')[0].cursor == 3


def test_page_keys_use_layout_page_size():
    state = _state(30)
    state, _ = transition(state, Resize(width=120, height=18))
    assert state.page_size == 7
    assert press(state, 'pagedown')[0].cursor == 7
    assert press(state, 'pagedown', 'pageup')[0].cursor == 0


def test_q_quits_from_normal():
    _, effect = press(_state(), 'q')
    assert isinstance(effect, Quit)


def test_quit_keys_work_from_every_mode():
    state = _state()
    for prefix in ([], ['v'], ['/'], ['e'], ['/', 's', 'a'], ['e', 'g', 'r']):
        for key in ('q', 'ctrl+c'):
            _, effect = press(state, *prefix, key)
            assert isinstance(effect, Quit)


def test_u_clears_current_row():
    state, effect = press(_state(), 'j', 'u')
    assert effect == ClearCategorization(("t1",))
    assert state.message == "Uncategorized 'Purchase 1'"


def test_keys_on_empty_list_do_nothing():
    state = _state(0)
    for key in ('j', 'k', 'G', 'v', 'e', 'u'):
        new, effect = press(state, key)
        assert effect is None
        assert isinstance(new.mode, Normal)
        assert new.cursor == 0


# Visual selection

def test_visual_selection_tracks_anchor_and_cursor():
    state, _ = press(_state(), 'j', 'j', 'j', 'v')
    assert isinstance(state.mode, VisualSelect)
    assert state.mode.anchor == 3
    assert state.selection == {3}

    state, _ = press(state, 'j', 'j', 'j', 'j')
    assert state.cursor == 7
    assert state.selection == {3, 4, 5, 6, 7}
    assert state.message == "Visual mode: 5 rows selected"

    state, _ = press(state, *['k'] * 6)
    assert state.cursor == 1
    assert state.selection == {1, 2, 3}


def test_visual_cancel_clears_selection():
    for key in ('esc', 'v'):
        state, effect = press(_state(), 'v', 'j', key)
        assert effect is None
        assert isinstance(state.mode, Normal)
        assert state.selection == frozenset()
        assert state.message == "Visual mode cancelled"


def test_visual_bulk_uncategorize():
    state, effect = press(_state(), 'j', 'v', 'j', 'j', 'u')
    assert effect == ClearCategorization(("t1", "t2", "t3"))
    assert isinstance(state.mode, Normal)
    assert state.selection == frozenset()


def test_visual_bulk_categorize():
    state, _ = press(_state(), 'v', 'j', 'e')
    assert isinstance(state.mode, InputEdit)
    assert state.mode.targets == ("t0", "t1")
    assert state.message == "Enter category for 2 transactions (or press Esc to cancel)"

    state, effect = press(state, 'g', 'a', 's', 'enter')
    assert effect == ApplyCategory(("t0", "t1"), CATEGORIES[1])
    assert isinstance(state.mode, Normal)
    assert state.selection == frozenset()
    assert state.message == "Categorized 2 transactions as 'Gas'"


def test_visual_q_quits():
    _, effect = press(_state(), 'v', 'q')
    assert isinstance(effect, Quit)


def test_selection_range():
    assert selection_range(3, 7, 10) == {3, 4, 5, 6, 7}
    assert selection_range(3, 1, 10) == {1, 2, 3}
    assert selection_range(8, 12, 10) == {8, 9}


# Input edit

def test_partial_name_applies_best_match():
    state, effect = press(_state(), 'e', 'g', 'r', 'o', 'c', 'enter')
    assert effect == ApplyCategory(("t0",), CATEGORIES[0])
    assert state.message == "Categorized 'Purchase 0' as 'Groceries'"


def test_unknown_category_stays_in_input():
    state, effect = press(_state(), 'e', 'x', 'y', 'z', 'enter')
    assert effect is None
    assert isinstance(state.mode, InputEdit)
    assert state.mode.buffer == "xyz"
    assert state.message == "No matching category found for 'xyz'"


def test_empty_input_enter_is_a_no_op():
    state, effect = press(_state(), 'e', 'enter')
    assert effect is None
    assert isinstance(state.mode, InputEdit)


def test_input_escape_cancels():
    state, effect = press(_state(), 'e', 'g', 'esc')
    assert effect is None
    assert isinstance(state.mode, Normal)
    assert state.message == "Categorization cancelled"


def test_navigation_letters_are_typed_in_input():
    state, effect = press(_state(), 'e', 'j', 'k', 'g', 'backspace')
    assert effect is None
    assert state.mode.buffer == "jk"
    assert state.cursor == 0


def test_internal_category_can_be_applied():
    _, effect = press(_state(), 'e', 't', 'r', 'a', 'n', 's', 'enter')
    assert effect.category.is_internal


# Search

def _search_state():
    txns = [
        make_txn("t0", "Starbucks", account_id="cc"),
        make_txn("t1", "Shell Gas", account_id="chk"),
        make_txn("t2", "Salary", amount=250000, account_id="chk"),
    ]
    return new_state(txns, CATEGORIES, {"cc": "Sapphire", "chk": "Checking"})


def test_search_finds_matches_in_order_and_n_cycles():
    state, _ = press(_search_state(), '/', 's', 'a')
    assert isinstance(state.mode, Search)
    assert state.mode.buffer == "sa"

    state, _ = press(state, 'enter')
    assert isinstance(state.mode, Normal)
    assert state.matches == (0, 2)
    assert state.cursor == 0
    assert state.message == "Found 2 matches (n/N to navigate)"

    state, _ = press(state, 'n')
    assert state.cursor == 2
    assert state.message == "Match 2 of 2"

    state, _ = press(state, 'n')
    assert state.cursor == 0

    state, _ = press(state, 'N')
    assert state.cursor == 2


def test_search_matches_amount():
    state = _search_state()
    assert press(state, '/', '2', '5', '0', '0', 'enter')[0].matches == (2,)


def test_search_without_matches():
    state, _ = press(_search_state(), '/', 'z', 'z', 'enter')
    assert state.matches == ()
    assert state.message == "No matches found for 'zz'"

    state, _ = press(state, 'n')
    assert state.message == "No search results"


def test_search_escape_and_empty_enter():
    state, _ = press(_search_state(), '/', 's', 'a', 'enter')

    cancelled, _ = press(state, '/', 'x', 'esc')
    assert isinstance(cancelled.mode, Normal)
    assert cancelled.message == "Search cancelled"
    assert cancelled.matches == (0, 2)

    empty, _ = press(state, '/', 'enter')
    assert isinstance(empty.mode, Normal)
    assert empty.matches == (0, 2)


def test_q_quits_while_typing_a_search():
    state, effect = press(_search_state(), '/', 's', 'q')
    assert isinstance(effect, Quit)
    assert state.mode.buffer == "s"


# Resize and reload

def test_layout_is_set_once():
    state, _ = transition(_state(), Resize(width=120, height=40))
    first = state.layout
    assert isinstance(first, TableLayout)

    state, effect = transition(state, Resize(width=200, height=60))
    assert effect is None
    assert state.layout is first


def test_reload_clamps_cursor_and_reruns_search():
    state, _ = press(_search_state(), '/', 's', 'a', 'enter', 'n')
    assert state.cursor == 2

    remaining = [make_txn("t0", "Starbucks", account_id="cc")]
    state = reload(state, remaining, CATEGORIES)

    assert state.cursor == 0
    assert state.matches == (0,)
    assert state.match_index == 0


def test_category_label():
    state = _state()
    txn = make_txn("x", category_id=4)
    assert category_label(state, txn) == "Transfer (internal)"
    assert category_label(state, make_txn("y")) == "Uncategorized"
    assert category_label(state, make_txn("z", category_id=1)) == "Groceries"
