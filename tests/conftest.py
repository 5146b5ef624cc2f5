from __future__ import annotations

from decimal import Decimal

import pytest
from samples import make_line, nfe_xml

from calcfiscal.models.line import TaxableLine
from calcfiscal.models.uf_config import UfTaxConfig
from calcfiscal.services.rule_store import TaxRuleStore

# --- Rule fixtures ---


@pytest.fixture
def rules_dict() -> dict:
    return {
        "PA": {
            "aliquota_interna": 19,
            "metodo_calculo_difal": "duplo",
            "regra_especial": "Regra especial do Pará",
        },
        "SP": {"aliquota_interna": 18, "metodo_calculo_difal": "simples"},
        "MG": {"aliquota_interna": "18", "metodo_calculo_difal": "duplo"},
    }


@pytest.fixture
def rule_store(rules_dict) -> TaxRuleStore:
    return TaxRuleStore.from_dict(rules_dict)


@pytest.fixture
def gross_up_18() -> UfTaxConfig:
    return UfTaxConfig("MG", Decimal("18"), "gross-up")


@pytest.fixture
def net_18() -> UfTaxConfig:
    return UfTaxConfig("SP", Decimal("18"), "net")


# --- Line / document fixtures ---


@pytest.fixture
def line() -> TaxableLine:
    return make_line()


@pytest.fixture
def nfe_file(tmp_path):
    path = tmp_path / "nota_a.xml"
    path.write_bytes(nfe_xml())
    return path


@pytest.fixture
def config_dirs(monkeypatch, tmp_path, rules_dict):
    """Point config and data directories at tmp_path with a rule table in place."""
    import yaml

    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    config_dir.mkdir()
    (config_dir / "uf_rules.yaml").write_text(yaml.safe_dump(rules_dict, allow_unicode=True))
    monkeypatch.setenv("CALCFISCAL_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("CALCFISCAL_DATA_DIR", str(data_dir))
    return config_dir, data_dir
