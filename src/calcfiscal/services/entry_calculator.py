"""Entry-side ICMS credit and DIFAL per purchased-invoice line.

Pure functions: results depend only on the immutable TaxableLine fields, the
destination state and its rule. Callers recompute from scratch whenever either
changes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from calcfiscal.models.line import ComputedLine, TaxableLine
from calcfiscal.models.uf_config import METHOD_GROSS_UP, METHOD_NET, UfTaxConfig
from calcfiscal.services.exceptions import MissingStateConfig

logger = logging.getLogger(__name__)

# CSTs whose ICMS is not recoverable by the buyer (exempt, suspended,
# non-incidence, ST without own debit, reduced base, others)
CST_SEM_CREDITO = frozenset({
    "20", "30", "40", "41", "50", "51", "60", "70", "80", "81", "90",
})

# CSTs under substituição tributária
CST_ST = frozenset({"10", "30", "60", "70"})

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def difal_gross_up(tax_base: Decimal, origin_rate: Decimal, dest_rate: Decimal) -> Decimal:
    """Base dupla: gross the base up by the destination rate, then take the rate gap."""
    adjusted_base = tax_base / (1 - dest_rate / _HUNDRED)
    dest_tax = adjusted_base * dest_rate / _HUNDRED
    origin_tax = adjusted_base * origin_rate / _HUNDRED
    return max(_ZERO, dest_tax - origin_tax)


def difal_net(tax_base: Decimal, origin_rate: Decimal, dest_rate: Decimal) -> Decimal:
    """Base simples: rate gap applied to the original base."""
    return max(_ZERO, tax_base * (dest_rate - origin_rate) / _HUNDRED)


_DIFAL_FORMULAS = {
    METHOD_GROSS_UP: difal_gross_up,
    METHOD_NET: difal_net,
}


def is_credit_eligible(cst: str) -> bool:
    return cst not in CST_SEM_CREDITO


def is_substitution(cst: str) -> bool:
    return cst in CST_ST


def compute_line(line: TaxableLine, config: UfTaxConfig | None) -> ComputedLine:
    """Compute credit and DIFAL for one line under *config* (None = no rule)."""
    substitution = is_substitution(line.cst)

    if config is None:
        return ComputedLine(
            line=line,
            credit_eligible=True,
            icms_credit=line.vat_charged,
            difal=_ZERO,
            substitution=substitution,
            method=None,
        )

    eligible = is_credit_eligible(line.cst)
    formula = _DIFAL_FORMULAS[config.difal_method]
    return ComputedLine(
        line=line,
        credit_eligible=eligible,
        icms_credit=line.vat_charged if eligible else _ZERO,
        difal=formula(line.tax_base, line.origin_rate, config.internal_rate),
        substitution=substitution,
        method=config.difal_method,
        rule_state_applied=config.special_rule is not None,
    )


def missing_config_notice(dest_state: str, config: UfTaxConfig | None) -> MissingStateConfig | None:
    """Return the notice the caller must surface when *dest_state* has no rule."""
    if config is not None:
        return None
    return MissingStateConfig(dest_state.upper())


def compute_lines(
    lines: Iterable[TaxableLine],
    dest_state: str,
    config: UfTaxConfig | None,
) -> list[ComputedLine]:
    """Compute every line for *dest_state*, preserving input order."""
    if config is None:
        logger.warning("No ICMS rule for state %s; assuming full credit and zero DIFAL", dest_state)
    return [compute_line(line, config) for line in lines]
