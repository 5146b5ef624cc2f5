from __future__ import annotations

import pytest
from samples import KEY_A, KEY_B, parsed_invoice

from calcfiscal.tui.app import CalculoFiscalApp


@pytest.fixture
def mock_config(config_dirs):
    """Isolated config/data directories so the TUI can launch without real files."""
    return config_dirs


@pytest.fixture
def make_app(mock_config, rule_store):
    """Build an app on the test rule store; optionally preloaded with two invoices."""

    def _make(destination_state: str = "SP", loaded: bool = False) -> CalculoFiscalApp:
        app = CalculoFiscalApp(destination_state=destination_state, rule_store=rule_store)
        if loaded:
            app.collection.load(parsed_invoice(KEY_A), "nota_a.xml")
            app.collection.load(parsed_invoice(KEY_B), "nota_b.xml")
        return app

    return _make
