from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

APP_NAME = "calculo-fiscal"


def _resolve_config_dir_for_dotenv() -> Path | None:
    """Resolve config dir for .env loading without depending on env vars from .env itself.

    Only checks sources available before .env is loaded (env var set in shell,
    dev layout). Returns None if only platformdirs would resolve and the
    directory does not exist yet.
    """
    from_env = os.environ.get("CALCFISCAL_CONFIG_DIR")
    if from_env:
        return Path(from_env)
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / "config"
    if candidate.is_dir():
        return candidate
    pd = Path(platformdirs.user_config_dir(APP_NAME))
    if pd.is_dir():
        return pd
    return None


# Load .env: cwd first (highest priority), then config dir (won't override)
load_dotenv()
_cfg_dir = _resolve_config_dir_for_dotenv()
if _cfg_dir is not None:
    load_dotenv(_cfg_dir / ".env")


def _resolve_dir(env_var: str, default_subdir: str, kind: str) -> Path:
    """Resolve a directory from env var, repo layout, or platform default.

    Priority: 1) env var, 2) dev repo layout, 3) platformdirs user directory.
    """
    from_env = os.environ.get(env_var)
    if from_env:
        return Path(from_env)
    # Development layout: src/calcfiscal/config.py -> ../../.. = project root
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / default_subdir
    if candidate.is_dir():
        return candidate
    if kind == "config":
        return Path(platformdirs.user_config_dir(APP_NAME))
    return Path(platformdirs.user_data_dir(APP_NAME))


def get_config_dir() -> Path:
    """Resolve config directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("CALCFISCAL_CONFIG_DIR", "config", kind="config")


def get_data_dir() -> Path:
    """Resolve data directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("CALCFISCAL_DATA_DIR", "data", kind="data")


UF_RULES_FILE = "uf_rules.yaml"
SETTINGS_FILE = "settings.yaml"

ESTADOS = (
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA", "MT", "MS", "MG", "PA",
    "PB", "PR", "PE", "PI", "RJ", "RN", "RS", "RO", "RR", "SC", "SP", "SE", "TO",
)

DEFAULT_UF_DESTINO = "PA"

# Seller defaults for the sale price sheet (percentages)
DEFAULT_SALE_PARAMS: dict[str, Decimal] = {
    "output_vat_percent": Decimal("18"),
    "pis_percent": Decimal("0.65"),
    "cofins_percent": Decimal("3"),
    "fixed_expense_percent": Decimal("10"),
    "margin_percent": Decimal("25"),
}

# settings.yaml keys -> SaleLineParams field names
_SALE_PARAM_KEYS = {
    "icms_saida": "output_vat_percent",
    "pis": "pis_percent",
    "cofins": "cofins_percent",
    "despesa_fixa": "fixed_expense_percent",
    "margem": "margin_percent",
}


# --- YAML config ---


def load_yaml(path: Path) -> dict:
    """Load and parse a YAML file, returning the top-level dict."""
    return yaml.safe_load(path.read_text()) or {}


def get_uf_rules_path() -> Path:
    return get_config_dir() / UF_RULES_FILE


def load_uf_rules() -> dict:
    """Load the per-state rule table from config/uf_rules.yaml."""
    return load_yaml(get_uf_rules_path())


def load_settings() -> dict:
    """Load config/settings.yaml, returning an empty dict when absent."""
    path = get_config_dir() / SETTINGS_FILE
    if not path.is_file():
        return {}
    return load_yaml(path)


def get_default_uf() -> str:
    """Destination state preselected on startup (settings or PA)."""
    uf = str(load_settings().get("uf_destino_padrao", DEFAULT_UF_DESTINO)).upper()
    return uf if uf in ESTADOS else DEFAULT_UF_DESTINO


def get_default_sale_params() -> dict[str, Decimal]:
    """Seller defaults merged with the optional ``parametros_venda`` block."""
    params = dict(DEFAULT_SALE_PARAMS)
    overrides = load_settings().get("parametros_venda") or {}
    for key, field_name in _SALE_PARAM_KEYS.items():
        if key in overrides:
            params[field_name] = Decimal(str(overrides[key]))
    return params


def get_analyses_path() -> Path:
    return get_data_dir() / "analyses.json"


def get_reports_dir() -> Path:
    """Return the directory where exported JSON reports are written."""
    return get_data_dir() / "reports"
