"""
Interactive categorization session

Spreadsheet-style terminal UI: browse transactions, select ranges
vim-style, search, and assign categories by typing part of a name.
One key press is fully processed (including store writes) before the
next is read.
"""
from dataclasses import replace
from typing import Dict, List, Optional

from prompt_toolkit.application import Application
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl

from ..core.models import Transaction
from ..core.store import TransactionStore
from ..errors import StoreError
from .render import DEFAULT_THEME, Theme, render
from .state import (
    ApplyCategory,
    ClearCategorization,
    Effect,
    Event,
    Key,
    Quit,
    Resize,
    SessionState,
    new_state,
    reload,
    transition,
)


# prompt_toolkit key -> name understood by the state machine
SPECIAL_KEYS = {
    'enter': 'enter',
    'escape': 'esc',
    'backspace': 'backspace',
    'up': 'up',
    'down': 'down',
    'pageup': 'pageup',
    'pagedown': 'pagedown',
    'home': 'home',
    'end': 'end',
    'c-c': 'ctrl+c',
}


class InteractiveCategorizer:
    """
    Owns the session state and executes effects against the store
    """

    def __init__(self, store: TransactionStore, theme: Theme = DEFAULT_THEME):
        self.store = store
        self.theme = theme
        self.state: Optional[SessionState] = None
        self.finished = False

    def _account_names(self, transactions: List[Transaction]) -> Dict[str, str]:
        names = {}
        for txn in transactions:
            if txn.account_id not in names:
                names[txn.account_id] = self.store.account_display_name(txn.account_id)
        return names

    def load(self) -> SessionState:
        """Read transactions, categories and account names into a fresh state"""
        transactions = self.store.list_transactions()
        categories = self.store.list_categories()
        self.state = new_state(transactions, categories, self._account_names(transactions))
        return self.state

    def refresh(self):
        """Re-read from the store after a mutation"""
        transactions = self.store.list_transactions()
        categories = self.store.list_categories()
        self.state = reload(self.state, transactions, categories, self._account_names(transactions))

    def dispatch(self, event: Event) -> Optional[Effect]:
        """
        Feed one event through the state machine and execute its effect

        Returns:
            The effect that was executed, if any
        """
        if self.state is None:
            self.load()

        self.state, effect = transition(self.state, event)
        if effect is not None:
            self._execute(effect)
        return effect

    def _execute(self, effect: Effect):
        if isinstance(effect, Quit):
            self.finished = True
            return

        try:
            if isinstance(effect, ApplyCategory):
                for txn_id in effect.transaction_ids:
                    self.store.set_category(txn_id, effect.category.id)
            elif isinstance(effect, ClearCategorization):
                for txn_id in effect.transaction_ids:
                    self.store.clear_category(txn_id)
                    self.store.clear_transfer_flag(txn_id)
        except StoreError as e:
            verb = "categorizing" if isinstance(effect, ApplyCategory) else "uncategorizing"
            self._report(f"Error {verb}: {e}")

        try:
            self.refresh()
        except StoreError as e:
            self._report(f"Error refreshing transactions: {e}")

    def _report(self, message: str):
        self.state = replace(self.state, message=message)

    def render(self):
        return render(self.state, self.theme)

    def _observe_size(self, app: Application):
        size = app.output.get_size()
        self.dispatch(Resize(width=size.columns, height=size.rows))

    def key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        def bind(pt_key: str, name: str):
            @kb.add(pt_key, eager=True)
            def _(event):
                self.dispatch(Key(name))
                if self.finished:
                    event.app.exit()

        for pt_key, name in SPECIAL_KEYS.items():
            bind(pt_key, name)

        @kb.add(Keys.Any)
        def _(event):
            data = event.data
            if len(data) == 1 and data.isprintable():
                self.dispatch(Key(data))
                if self.finished:
                    event.app.exit()

        return kb

    def build_application(self) -> Application:
        control = FormattedTextControl(self.render, focusable=True, show_cursor=False)
        return Application(
            layout=Layout(Window(content=control, wrap_lines=False)),
            key_bindings=self.key_bindings(),
            full_screen=True,
            before_render=self._observe_size,
        )

    def run(self):
        """Block until the user quits"""
        if self.state is None:
            self.load()
        self.build_application().run()


def run_interactive_session(store: TransactionStore, theme: Theme = DEFAULT_THEME) -> bool:
    """
    Run the manual categorization UI

    Returns:
        False if there was nothing to show, True after the user quits
    """
    session = InteractiveCategorizer(store, theme)
    state = session.load()
    if not state.transactions:
        print("No transactions found.")
        return False
    session.run()
    return True
