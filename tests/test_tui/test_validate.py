from __future__ import annotations

import pytest

from calcfiscal.tui.screens.entrada import EntradaScreen
from calcfiscal.tui.screens.validate import ValidateScreen


async def _output(app, pilot) -> str:
    from textual.widgets import RichLog

    await app.workers.wait_for_complete()
    await pilot.pause()
    log = app.screen.query_one("#validation-output", RichLog)
    return "\n".join(str(line) for line in log.lines)


@pytest.mark.asyncio
async def test_validate_screen_opens(make_app):
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.press("r")
        assert isinstance(app.screen, ValidateScreen)


@pytest.mark.asyncio
async def test_validate_screen_closes_on_escape(make_app):
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.press("r")
        assert isinstance(app.screen, ValidateScreen)
        await pilot.press("escape")
        assert isinstance(app.screen, EntradaScreen)


@pytest.mark.asyncio
async def test_validate_lists_rules(make_app):
    app = make_app("PA")
    async with app.run_test() as pilot:
        await pilot.press("r")
        text = await _output(app, pilot)
        assert "3 UF(s)" in text
        assert "PA: interna 19%" in text
        assert "Regra especial do Pará" in text
        assert "UF de destino PA: regra configurada" in text


@pytest.mark.asyncio
async def test_validate_warns_missing_destination_rule(make_app):
    app = make_app("AC")
    async with app.run_test() as pilot:
        await pilot.press("r")
        text = await _output(app, pilot)
        assert "UF de destino AC: sem regra" in text


@pytest.mark.asyncio
async def test_validate_reports_invalid_rule_file(make_app, mock_config):
    config_dir, _ = mock_config
    (config_dir / "uf_rules.yaml").write_text("PA:\n  metodo_calculo_difal: triplo\n")
    app = make_app()
    async with app.run_test() as pilot:
        await pilot.press("r")
        text = await _output(app, pilot)
        assert "ERRO" in text
