from __future__ import annotations

from decimal import Decimal

import pytest

from calcfiscal.services.exceptions import RuleConfigError
from calcfiscal.services.rule_store import TaxRuleStore


class TestFromDict:
    def test_builds_configs(self, rule_store):
        assert len(rule_store) == 3
        assert rule_store.states() == ["MG", "PA", "SP"]

        pa = rule_store.get_config("PA")
        assert pa.internal_rate == Decimal("19")
        assert pa.difal_method == "gross-up"
        assert pa.special_rule == "Regra especial do Pará"

        sp = rule_store.get_config("SP")
        assert sp.difal_method == "net"
        assert sp.special_rule is None

    def test_lookup_is_case_insensitive(self, rule_store):
        assert rule_store.get_config("sp") is rule_store.get_config("SP")

    def test_unknown_state(self, rule_store):
        assert rule_store.get_config("AC") is None

    def test_iterates_in_state_order(self, rule_store):
        assert [cfg.state_code for cfg in rule_store] == ["MG", "PA", "SP"]

    def test_empty(self):
        assert len(TaxRuleStore.from_dict({})) == 0
        assert len(TaxRuleStore.from_dict(None)) == 0

    def test_lowercase_state_keys(self):
        store = TaxRuleStore.from_dict({"ba": {"aliquota_interna": 20.5}})
        assert store.get_config("BA").internal_rate == Decimal("20.5")

    def test_entry_not_mapping(self):
        with pytest.raises(RuleConfigError, match="PA"):
            TaxRuleStore.from_dict({"PA": 19})

    def test_invalid_entry(self):
        with pytest.raises(RuleConfigError):
            TaxRuleStore.from_dict({"PA": {"aliquota_interna": 19, "metodo_calculo_difal": "triplo"}})


class TestLoad:
    def test_load_from_config_dir(self, config_dirs):
        store = TaxRuleStore.load()
        assert store.states() == ["MG", "PA", "SP"]

    def test_missing_file_gives_empty_store(self, monkeypatch, tmp_path, caplog):
        monkeypatch.setenv("CALCFISCAL_CONFIG_DIR", str(tmp_path))
        with caplog.at_level("WARNING"):
            store = TaxRuleStore.load()
        assert len(store) == 0
        assert "uf_rules.yaml" in caplog.text

    def test_invalid_file_raises(self, monkeypatch, tmp_path):
        (tmp_path / "uf_rules.yaml").write_text("PA:\n  aliquota_interna: 100\n")
        monkeypatch.setenv("CALCFISCAL_CONFIG_DIR", str(tmp_path))
        with pytest.raises(RuleConfigError):
            TaxRuleStore.load()
