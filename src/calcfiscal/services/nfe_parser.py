"""NF-e XML (modelo 55) to the ``{capa, itens}`` structure the engine consumes.

Paths are namespace-agnostic so both bare ``NFe`` documents and ``nfeProc``
envelopes from the portal parse the same way.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from lxml import etree

from calcfiscal.services.exceptions import InvoiceParseError

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)


def _txt(el: etree._Element | None, path: str, default: str = "") -> str:
    if el is None:
        return default
    found = el.findtext(path)
    return found.strip() if found else default


_ICMS_FIELDS = ("vBC", "pICMS", "vICMS")

# Groups with no own-operation ICMS (exempt, ST-only, Simples Nacional)
_UNTAXED_GROUPS = frozenset({"ICMS30", "ICMS40", "ICMS41", "ICMS50", "ICMS60", "ICMSST"})
# Groups where the whole base/rate/value triple may be omitted
_OPTIONAL_GROUPS = frozenset({"ICMS51", "ICMS90", "ICMSSN900"})


def _icms_group(imposto: etree._Element | None) -> etree._Element | None:
    """Return the concrete ICMS group (ICMS00, ICMS40, ICMSSN102…) of an item."""
    if imposto is None:
        return None
    icms = imposto.find("{*}ICMS")
    if icms is None or len(icms) == 0:
        return None
    return icms[0]


def _icms_values(icms: etree._Element | None) -> dict[str, str | None]:
    """vBC / pICMS / vICMS of an ICMS group.

    Untaxed groups report zeros. Anywhere else a missing value stays None so
    the line is rejected later instead of being computed on a zero base.
    """
    if icms is None:
        return dict.fromkeys(_ICMS_FIELDS)
    values = {name: _txt(icms, f"{{*}}{name}") or None for name in _ICMS_FIELDS}
    group = etree.QName(icms).localname
    untaxed = group in _UNTAXED_GROUPS or (
        group.startswith("ICMSSN") and group not in _OPTIONAL_GROUPS
    )
    if untaxed or (group in _OPTIONAL_GROUPS and not any(values.values())):
        return {name: value or "0" for name, value in values.items()}
    return values


def _parse_item(det: etree._Element) -> dict[str, Any]:
    prod = det.find("{*}prod")
    imposto = det.find("{*}imposto")
    icms = _icms_group(imposto)

    item: dict[str, Any] = {
        "nItem": det.get("nItem", ""),
        "xProd": _txt(prod, "{*}xProd"),
        "ncm": _txt(prod, "{*}NCM"),
        "cfop": _txt(prod, "{*}CFOP"),
        "qCom": _txt(prod, "{*}qCom") or None,
        "vProd": _txt(prod, "{*}vProd") or None,
        "cst": _txt(icms, "{*}CST"),
        **_icms_values(icms),
        "vIPI": _txt(imposto, "{*}IPI/{*}IPITrib/{*}vIPI", "0"),
    }
    return item


def parse_nfe(xml_bytes: bytes, source: str | None = None) -> dict[str, Any]:
    """Parse NF-e XML bytes into ``{"capa": {...}, "itens": [...]}``.

    Raises InvoiceParseError for malformed XML or a document that is not an NF-e.
    """
    try:
        root = etree.fromstring(xml_bytes, _PARSER)
    except etree.XMLSyntaxError as e:
        raise InvoiceParseError(f"XML inválido: {e}", source) from None

    inf = root if etree.QName(root).localname == "infNFe" else root.find(".//{*}infNFe")
    if inf is None:
        raise InvoiceParseError("Documento não é uma NF-e (infNFe ausente)", source)

    ch_nfe = inf.get("Id", "").removeprefix("NFe")
    if not ch_nfe:
        ch_nfe = _txt(root, ".//{*}protNFe/{*}infProt/{*}chNFe")
    if not ch_nfe:
        raise InvoiceParseError("Chave de acesso (chNFe) ausente", source)

    capa = {
        "chNFe": ch_nfe,
        "nNF": _txt(inf, "{*}ide/{*}nNF"),
        "emitNome": _txt(inf, "{*}emit/{*}xNome"),
        "emitUF": _txt(inf, "{*}emit/{*}enderEmit/{*}UF"),
        "destUF": _txt(inf, "{*}dest/{*}enderDest/{*}UF"),
    }
    itens = [_parse_item(det) for det in inf.iterfind("{*}det")]
    return {"capa": capa, "itens": itens}


def parse_file(path: Path) -> dict[str, Any]:
    """Read and parse an NF-e XML file."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise InvoiceParseError(f"Não foi possível ler o arquivo: {e}", path.name) from None
    return parse_nfe(data, source=path.name)
