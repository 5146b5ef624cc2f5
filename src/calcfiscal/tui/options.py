"""Shared Select options and display labels for the fiscal screens.

Labels use "code — description" format.
"""

from __future__ import annotations

from calcfiscal.config import ESTADOS

UF_OPTIONS: tuple[tuple[str, str], ...] = tuple((uf, uf) for uf in ESTADOS)

# Short badge shown in the line tables
METHOD_BADGES = {
    "gross-up": "duplo",
    "net": "simples",
    None: "sem regra",
}

CST_LABELS = {
    "00": "00 — Tributada integralmente",
    "10": "10 — Tributada com cobrança de ICMS por ST",
    "20": "20 — Com redução de base de cálculo",
    "30": "30 — Isenta/não tributada com cobrança por ST",
    "40": "40 — Isenta",
    "41": "41 — Não tributada",
    "50": "50 — Suspensão",
    "51": "51 — Diferimento",
    "60": "60 — ICMS cobrado anteriormente por ST",
    "70": "70 — Redução de base com cobrança por ST",
    "80": "80 — Regime especial",
    "81": "81 — Regime especial de outra UF",
    "90": "90 — Outras",
}
