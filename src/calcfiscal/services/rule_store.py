"""Read-only per-state ICMS rule table.

The table lives in ``uf_rules.yaml`` in the config directory, one entry per
destination state::

    PA:
      aliquota_interna: 19
      metodo_calculo_difal: duplo
      regra_especial: Regra especial do Pará
    SP:
      aliquota_interna: 18
      metodo_calculo_difal: simples

A state without an entry is valid: the engine falls back to full credit and
zero DIFAL.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping

from calcfiscal.models.uf_config import UfTaxConfig
from calcfiscal.services.exceptions import RuleConfigError

logger = logging.getLogger(__name__)


class TaxRuleStore:
    def __init__(self, configs: Mapping[str, UfTaxConfig] | None = None) -> None:
        self._configs = {uf.upper(): cfg for uf, cfg in (configs or {}).items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, dict]) -> TaxRuleStore:
        """Build the store from a YAML-loaded mapping, validating every entry."""
        configs: dict[str, UfTaxConfig] = {}
        for uf, entry in (data or {}).items():
            uf = str(uf).upper()
            if not isinstance(entry, Mapping):
                raise RuleConfigError(f"{uf}: regra deve ser um mapeamento")
            configs[uf] = UfTaxConfig.from_dict(uf, dict(entry))
        return cls(configs)

    @classmethod
    def load(cls) -> TaxRuleStore:
        """Load the store from the configured uf_rules.yaml."""
        from calcfiscal import config as _config

        path = _config.get_uf_rules_path()
        if not path.is_file():
            logger.warning("Rule table not found: %s", path)
            return cls()
        store = cls.from_dict(_config.load_uf_rules())
        logger.info("Loaded %d state rule(s) from %s", len(store), path)
        return store

    def get_config(self, state_code: str) -> UfTaxConfig | None:
        return self._configs.get(state_code.upper())

    def states(self) -> list[str]:
        return sorted(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __iter__(self) -> Iterator[UfTaxConfig]:
        return iter(self._configs[uf] for uf in self.states())
