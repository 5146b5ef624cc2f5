from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import yaml
from samples import KEY_A, KEY_B, nfe_xml

from calcfiscal.cli import _calcular, _init_config, _preflight, main


class TestMain:
    @patch("calcfiscal.tui.app.CalculoFiscalApp")
    @patch("calcfiscal.cli._preflight", return_value=True)
    def test_launches_tui(self, mock_preflight, mock_app_cls):
        mock_app = MagicMock()
        mock_app_cls.return_value = mock_app
        with patch("sys.argv", ["calculo-fiscal"]):
            main()
        mock_preflight.assert_called_once()
        mock_app_cls.assert_called_once()
        mock_app.run.assert_called_once()

    @patch("calcfiscal.cli._init_config")
    def test_init_dispatches(self, mock_init):
        with patch("sys.argv", ["calculo-fiscal", "init"]):
            main()
        mock_init.assert_called_once()

    @patch("calcfiscal.cli._calcular", return_value=0)
    def test_calcular_dispatches(self, mock_calc):
        with (
            patch("sys.argv", ["calculo-fiscal", "calcular", "PA", "a.xml"]),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()
        mock_calc.assert_called_once_with(["PA", "a.xml"])
        assert exc_info.value.code == 0

    def test_help(self, capsys):
        with patch("sys.argv", ["calculo-fiscal", "--help"]):
            main()
        assert "calcular" in capsys.readouterr().out

    @patch("calcfiscal.cli._preflight", return_value=False)
    def test_exit_1_on_failure(self, mock_preflight):
        with patch("sys.argv", ["calculo-fiscal"]), pytest.raises(SystemExit, match="1"):
            main()


class TestPreflight:
    def test_preflight_ok(self, monkeypatch, tmp_path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "uf_rules.yaml").write_text(yaml.dump({"PA": {"aliquota_interna": 19}}))
        data_dir = tmp_path / "data"
        monkeypatch.setattr("calcfiscal.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("calcfiscal.config.get_data_dir", lambda: data_dir)
        assert _preflight() is True
        assert data_dir.is_dir()

    def test_preflight_no_config(self, monkeypatch, tmp_path, capsys):
        config_dir = tmp_path / "missing"
        data_dir = tmp_path / "data"
        monkeypatch.setattr("calcfiscal.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("calcfiscal.config.get_data_dir", lambda: data_dir)
        assert _preflight() is False
        assert "init" in capsys.readouterr().out

    def test_preflight_no_rules(self, monkeypatch, tmp_path, capsys):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        data_dir = tmp_path / "data"
        monkeypatch.setattr("calcfiscal.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("calcfiscal.config.get_data_dir", lambda: data_dir)
        assert _preflight() is False
        assert "uf_rules.yaml" in capsys.readouterr().out


class TestInitConfig:
    def test_copies_templates(self, monkeypatch, tmp_path):
        config_dir = tmp_path / "config"
        data_dir = tmp_path / "data"
        monkeypatch.setattr("calcfiscal.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("calcfiscal.config.get_data_dir", lambda: data_dir)
        _init_config()
        rules = yaml.safe_load((config_dir / "uf_rules.yaml.example").read_text())
        assert rules["PA"]["metodo_calculo_difal"] == "duplo"
        assert (config_dir / "settings.yaml.example").exists()
        assert data_dir.exists()

    def test_skips_existing(self, monkeypatch, tmp_path, capsys):
        config_dir = tmp_path / "config"
        config_dir.mkdir(parents=True)
        (config_dir / "uf_rules.yaml.example").write_text("existing")
        data_dir = tmp_path / "data"
        monkeypatch.setattr("calcfiscal.config.get_config_dir", lambda: config_dir)
        monkeypatch.setattr("calcfiscal.config.get_data_dir", lambda: data_dir)
        _init_config()
        assert (config_dir / "uf_rules.yaml.example").read_text() == "existing"
        assert "já existe" in capsys.readouterr().out


class TestCalcular:
    @pytest.fixture
    def notas(self, tmp_path):
        a = tmp_path / "a.xml"
        a.write_bytes(nfe_xml(KEY_A))
        b = tmp_path / "b.xml"
        b.write_bytes(nfe_xml(KEY_B))
        return a, b

    def test_prints_lines_and_summary(self, config_dirs, notas, capsys):
        code = _calcular(["SP", *(str(p) for p in notas)])
        assert code == 0
        out = capsys.readouterr().out
        assert f"Nota {KEY_A}" in out
        assert "ROTEADOR WIFI AC1200" in out
        # two invoices, each with 60,00 on item 1 and an exempt item 2
        assert "DIFAL:            R$ 120,00" in out
        assert "Crédito de ICMS:  R$ 240,00" in out

    def test_writes_json(self, config_dirs, notas, tmp_path):
        out_path = tmp_path / "out" / "relatorio.json"
        code = _calcular(["MG", str(notas[0]), "--json", str(out_path)])
        assert code == 0
        report = json.loads(out_path.read_text())
        assert report["invoices"][0]["documentKey"] == KEY_A
        assert report["invoices"][0]["lines"][0]["difal"] == "73.17"

    def test_missing_rule_warns(self, config_dirs, notas, capsys):
        code = _calcular(["AC", str(notas[0])])
        assert code == 0
        out = capsys.readouterr().out
        assert "AVISO: Não há regra de cálculo para a UF AC" in out

    def test_bad_file_sets_exit_code(self, config_dirs, notas, tmp_path, capsys):
        broken = tmp_path / "quebrada.xml"
        broken.write_text("<NFe>")
        code = _calcular(["SP", str(notas[0]), str(broken)])
        assert code == 1
        out = capsys.readouterr().out
        assert "ERRO quebrada.xml" in out
        assert f"Nota {KEY_A}" in out

    def test_duplicate_file(self, config_dirs, notas, capsys):
        code = _calcular(["SP", str(notas[0]), str(notas[0])])
        assert code == 1
        assert "Nota já carregada" in capsys.readouterr().out

    def test_invalid_uf(self, config_dirs, notas, capsys):
        assert _calcular(["XX", str(notas[0])]) == 2
        assert "UF invalida" in capsys.readouterr().out

    def test_usage(self, capsys):
        assert _calcular(["PA"]) == 2
        assert "Uso:" in capsys.readouterr().out

    def test_json_without_path(self, capsys):
        assert _calcular(["PA", "a.xml", "--json"]) == 2

    def test_invalid_rule_table(self, monkeypatch, tmp_path, notas, capsys):
        (tmp_path / "uf_rules.yaml").write_text("PA:\n  metodo_calculo_difal: duplo\n")
        monkeypatch.setenv("CALCFISCAL_CONFIG_DIR", str(tmp_path))
        assert _calcular(["PA", str(notas[0])]) == 2
        assert "aliquota_interna" in capsys.readouterr().out
