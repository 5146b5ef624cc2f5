from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from calcfiscal.services.exceptions import RuleConfigError

METHOD_GROSS_UP = "gross-up"  # base dupla / por dentro
METHOD_NET = "net"  # base simples / por fora

DIFAL_METHODS = frozenset({METHOD_GROSS_UP, METHOD_NET})

# Names used by the rule table of the legacy quoting system
_METHOD_ALIASES = {
    "duplo": METHOD_GROSS_UP,
    "dupla": METHOD_GROSS_UP,
    "por dentro": METHOD_GROSS_UP,
    "simples": METHOD_NET,
    "por fora": METHOD_NET,
}

METHOD_LABELS = {
    METHOD_GROSS_UP: "Base Dupla (por dentro)",
    METHOD_NET: "Base Simples (por fora)",
}


def normalize_method(value: str) -> str:
    """Map a rule-table method name to ``gross-up`` or ``net``."""
    key = str(value).strip().lower()
    method = _METHOD_ALIASES.get(key, key)
    if method not in DIFAL_METHODS:
        raise RuleConfigError(f"Método de cálculo DIFAL desconhecido: '{value}'")
    return method


def _rate(value: object, name: str) -> Decimal:
    try:
        d = Decimal(str(value).replace(",", "."))
    except InvalidOperation:
        raise RuleConfigError(f"{name}: percentual inválido '{value}'") from None
    if not d.is_finite():
        raise RuleConfigError(f"{name}: percentual inválido '{value}'")
    return d


@dataclass(frozen=True)
class UfTaxConfig:
    """ICMS rule for one destination state."""

    state_code: str
    internal_rate: Decimal
    difal_method: str
    fcp_rate: Decimal | None = None
    special_rule: str | None = None  # label shown when this state's rule differs

    def __post_init__(self) -> None:
        if self.difal_method not in DIFAL_METHODS:
            raise RuleConfigError(f"Método de cálculo DIFAL desconhecido: '{self.difal_method}'")
        # 100% would make the gross-up base infinite
        if not (0 <= self.internal_rate < 100):
            raise RuleConfigError(
                f"{self.state_code}: alíquota interna deve estar entre 0 e 100 (exclusivo)"
            )
        if self.fcp_rate is not None and not (0 <= self.fcp_rate <= 100):
            raise RuleConfigError(f"{self.state_code}: FCP deve estar entre 0 e 100")

    @classmethod
    def from_dict(cls, state_code: str, d: dict) -> UfTaxConfig:
        """Create a config from a YAML-loaded rule entry."""
        if "aliquota_interna" not in d:
            raise RuleConfigError(f"{state_code}: aliquota_interna ausente")
        fcp = d.get("fcp")
        special = d.get("regra_especial")
        return cls(
            state_code=state_code.upper(),
            internal_rate=_rate(d["aliquota_interna"], "aliquota_interna"),
            difal_method=normalize_method(d.get("metodo_calculo_difal", METHOD_NET)),
            fcp_rate=_rate(fcp, "fcp") if fcp is not None else None,
            special_rule=str(special) if special else None,
        )
