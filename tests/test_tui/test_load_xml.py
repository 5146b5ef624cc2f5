from __future__ import annotations

import pytest
from samples import KEY_A, KEY_B, nfe_xml

from calcfiscal.tui.screens.entrada import EntradaScreen
from calcfiscal.tui.screens.load_xml import LoadXmlScreen


async def _load(app, pilot, text: str) -> None:
    from textual.widgets import Input

    await pilot.press("a")
    assert isinstance(app.screen, LoadXmlScreen)
    app.screen.query_one("#path-input", Input).value = text
    await pilot.press("enter")
    await app.workers.wait_for_complete()
    await pilot.pause()


@pytest.mark.asyncio
async def test_load_single_file_adopts_state(make_app, tmp_path):
    path = tmp_path / "a.xml"
    path.write_bytes(nfe_xml(KEY_A, dest_uf="MG"))
    app = make_app("SP")
    async with app.run_test() as pilot:
        await _load(app, pilot, str(path))
        assert KEY_A in app.collection
        assert app.collection.destination_state == "MG"

        await pilot.press("escape")
        await pilot.pause()
        assert isinstance(app.screen, EntradaScreen)
        from textual.widgets import Select

        assert app.screen.query_one("#uf-select", Select).value == "MG"
        assert app.screen.query_one("#total-notas").render().plain == "1"


@pytest.mark.asyncio
async def test_load_several_paths(make_app, tmp_path):
    folder = tmp_path / "notas"
    folder.mkdir()
    (folder / "a.xml").write_bytes(nfe_xml(KEY_A))
    other = tmp_path / "b.xml"
    other.write_bytes(nfe_xml(KEY_B))
    app = make_app()
    async with app.run_test() as pilot:
        await _load(app, pilot, f"{folder}; {other}")
        assert [inv.document_key for inv in app.collection.get_all()] == [KEY_A, KEY_B]


@pytest.mark.asyncio
async def test_load_reports_errors(make_app, tmp_path):
    from textual.widgets import RichLog

    path = tmp_path / "quebrada.xml"
    path.write_text("<NFe>")
    app = make_app()
    async with app.run_test() as pilot:
        await _load(app, pilot, str(path))
        assert len(app.collection) == 0
        log = app.screen.query_one("#load-result", RichLog)
        text = "\n".join(str(line) for line in log.lines)
        assert "ERRO" in text


@pytest.mark.asyncio
async def test_missing_path(make_app, tmp_path):
    from textual.widgets import Label

    app = make_app()
    async with app.run_test() as pilot:
        await _load(app, pilot, str(tmp_path / "nada.xml"))
        error = app.screen.query_one("#error-label", Label).render().plain
        assert "não encontrado" in error


@pytest.mark.asyncio
async def test_empty_input(make_app):
    from textual.widgets import Label

    app = make_app()
    async with app.run_test() as pilot:
        await _load(app, pilot, "  ")
        error = app.screen.query_one("#error-label", Label).render().plain
        assert "Informe" in error


@pytest.mark.asyncio
async def test_close_button(make_app):
    from textual.widgets import Button

    app = make_app()
    async with app.run_test() as pilot:
        await pilot.press("a")
        app.screen.query_one("#btn-voltar", Button).press()
        await pilot.pause()
        assert isinstance(app.screen, EntradaScreen)
