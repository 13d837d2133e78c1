from unittest.mock import MagicMock

import pytest

from money_categorizer.cli import categories as categories_cli
from money_categorizer.cli import categorize as categorize_cli
from money_categorizer.cli import init_db as init_db_cli
from money_categorizer.errors import GatewayError, StoreError

from conftest import FakeGateway, FakeStore, scripted_llm


@pytest.fixture
def patched_store(monkeypatch, store):
    monkeypatch.setattr(categories_cli, 'open_store', lambda *args: store)
    monkeypatch.setattr(categorize_cli, 'open_store', lambda *args: store)
    monkeypatch.delenv('LLM_BACKEND', raising=False)
    return store


def test_categories_list(patched_store, capsys):
    assert categories_cli.main(['list']) == 0
    out = capsys.readouterr().out
    assert "Category" in out
    assert "Transfer" in out
    assert patched_store.closed


def test_categories_list_empty(capsys):
    categories_cli.list_categories(FakeStore())
    assert "money-categories seed" in capsys.readouterr().out


def test_categories_add_internal(patched_store):
    assert categories_cli.main(['add', 'Brokerage', 'Transfer', '--internal']) == 0
    added = [c for c in patched_store.list_categories() if c.name == "Brokerage Transfer"]
    assert added and added[0].is_internal


def test_categories_set_and_clear_internal(patched_store):
    categories_cli.main(['set-internal', 'Gas'])
    assert next(c for c in patched_store.list_categories() if c.name == "Gas").is_internal
    categories_cli.main(['clear-internal', 'Gas'])
    assert not next(c for c in patched_store.list_categories() if c.name == "Gas").is_internal


def test_categories_remove_in_use_fails(patched_store, capsys):
    patched_store.transactions["t1"].category_id = 2

    assert categories_cli.main(['remove', 'Gas']) == 1
    assert "❌" in capsys.readouterr().out
    assert categories_cli.main(['remove', 'Salary']) == 0


def test_categories_seed(patched_store, capsys):
    assert categories_cli.main(['seed']) == 0
    assert "Added" in capsys.readouterr().out
    assert any(c.name == "Credit Card Payment" and c.is_internal for c in patched_store.list_categories())


def test_categories_connection_failure(monkeypatch, capsys):
    def fail(*args):
        raise StoreError("Database connection failed: refused")

    monkeypatch.setattr(categories_cli, 'open_store', fail)
    assert categories_cli.main(['list']) == 1
    assert "refused" in capsys.readouterr().out


def test_categorize_auto(patched_store, monkeypatch, capsys):
    monkeypatch.setattr(categorize_cli, 'build_gateway', lambda settings: FakeGateway(default=scripted_llm))

    assert categorize_cli.main(['auto']) == 0

    out = capsys.readouterr().out
    assert "AUTO-CATEGORIZATION COMPLETE" in out
    assert patched_store.transactions["t4"].is_transfer
    assert patched_store.transactions["t2"].category_id == 2
    assert patched_store.closed


def test_categorize_auto_reports_gateway_failure(patched_store, monkeypatch, capsys):
    monkeypatch.setattr(categorize_cli, 'build_gateway',
                        lambda settings: FakeGateway([GatewayError("ollama: command not found")]))

    assert categorize_cli.main(['auto', '--all']) == 1
    assert "ollama: command not found" in capsys.readouterr().out
    assert patched_store.writes == []


def test_categorize_defaults_to_manual(monkeypatch):
    calls = []
    monkeypatch.setattr(categorize_cli, 'run_manual', lambda: calls.append('manual') or 0)

    assert categorize_cli.main([]) == 0
    assert categorize_cli.main(['manual']) == 0
    assert calls == ['manual', 'manual']


def test_init_db_applies_schema_and_seeds(monkeypatch, capsys):
    conn = MagicMock()
    cursor = conn.cursor.return_value
    cursor.rowcount = 1
    cursor.fetchone.return_value = (3,)
    monkeypatch.setattr(init_db_cli, 'get_db_connection', lambda: conn)

    assert init_db_cli.main(['--seed']) == 0

    out = capsys.readouterr().out
    assert "Added 22 categories" in out
    assert "DATABASE SUMMARY" in out
    conn.close.assert_called_once()


def test_init_db_connection_failure(monkeypatch, capsys):
    def fail():
        raise StoreError("Database connection failed: refused")

    monkeypatch.setattr(init_db_cli, 'get_db_connection', fail)

    assert init_db_cli.main([]) == 1
    assert "refused" in capsys.readouterr().out
