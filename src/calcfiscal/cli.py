from __future__ import annotations

import sys
from importlib.resources import files
from pathlib import Path

USAGE = """Uso:
  calculo-fiscal                         abre a interface de análise
  calculo-fiscal init                    cria os arquivos de configuração de exemplo
  calculo-fiscal calcular UF nota.xml…   calcula crédito de ICMS e DIFAL das notas
      --json ARQUIVO                     grava também o relatório em JSON
"""


def _init_config() -> None:
    """Copy bundled config templates to the user's config/data directories."""
    from calcfiscal.config import get_config_dir, get_data_dir

    config_dir = get_config_dir()
    data_dir = get_data_dir()
    templates = files("calcfiscal") / "templates"

    config_dir.mkdir(parents=True, exist_ok=True)
    data_dir.mkdir(parents=True, exist_ok=True)

    copied = 0
    for rel in ["uf_rules.yaml.example", "settings.yaml.example"]:
        dest = config_dir / rel
        if dest.exists():
            print(f"  já existe: {dest}")
            continue
        src = templates / rel
        with src.open("rb") as f:
            dest.write_bytes(f.read())
        print(f"  criado: {dest}")
        copied += 1

    print()
    print(f"Configuração: {config_dir}")
    print(f"Dados:   {data_dir}")
    print()
    if copied:
        print("Próximos passos:")
        print(f"  1. cp {config_dir / 'uf_rules.yaml.example'} {config_dir / 'uf_rules.yaml'}")
        print("  2. Revise as alíquotas internas e o método de DIFAL de cada UF")
        print("  3. Execute: calculo-fiscal")
    else:
        print("Nenhum arquivo novo criado (todos já existiam).")


def _preflight() -> bool:
    """Verify minimal config before launching the TUI.

    Auto-creates the data directory. Returns False with a helpful
    message when the config directory or uf_rules.yaml is missing.
    """
    from calcfiscal.config import UF_RULES_FILE, get_config_dir, get_data_dir

    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)

    config_dir = get_config_dir()
    if not config_dir.is_dir():
        print(f"Erro: diretório de configuração não encontrado: {config_dir}")
        print("Execute 'calculo-fiscal init' para criar os arquivos de exemplo.")
        return False
    if not (config_dir / UF_RULES_FILE).is_file():
        print(f"Erro: {UF_RULES_FILE} não encontrado em {config_dir}")
        print("Execute 'calculo-fiscal init' e configure as regras por UF.")
        return False
    return True


def _calcular(args: list[str]) -> int:
    """Non-interactive entry computation. Returns the process exit code."""
    from calcfiscal.services.consolidation import aggregate, aggregate_invoice
    from calcfiscal.services.exceptions import RuleConfigError
    from calcfiscal.services.export import write_report
    from calcfiscal.services.intake import load_paths
    from calcfiscal.services.invoice_collection import InvoiceCollection
    from calcfiscal.services.rule_store import TaxRuleStore
    from calcfiscal.utils.formatters import format_brl
    from calcfiscal.utils.validators import validate_uf

    json_path: Path | None = None
    if "--json" in args:
        i = args.index("--json")
        if i + 1 >= len(args):
            print("Erro: --json requer o caminho do arquivo")
            return 2
        json_path = Path(args[i + 1])
        args = args[:i] + args[i + 2 :]

    if len(args) < 2:
        print(USAGE)
        return 2

    try:
        uf = validate_uf(args[0])
        store = TaxRuleStore.load()
    except (ValueError, RuleConfigError) as e:
        print(f"Erro: {e}")
        return 2

    collection = InvoiceCollection(store, uf)
    for notice in collection.set_destination_state(uf):
        print(f"AVISO: {notice.message}")

    failures = 0
    for outcome in load_paths(collection, [Path(name) for name in args[1:]]):
        name = outcome.path.name
        if outcome.result is None:
            print(f"ERRO {name}: {outcome.error}")
            failures += 1
            continue
        for err in outcome.result.skipped:
            print(f"AVISO {name}: item ignorado — {err}")

    invoices = collection.get_all()
    for inv in invoices:
        t = aggregate_invoice(inv)
        print()
        print(f"Nota {inv.document_key} ({inv.source_file_name})")
        for line in inv.lines:
            print(
                f"  {line.line_number:>3}  {line.description[:40]:<40}"
                f"  crédito {format_brl(line.icms_credit):>14}"
                f"  DIFAL {format_brl(line.difal):>14}"
            )
        print(f"  Total: crédito {format_brl(t.icms_credit)}  DIFAL {format_brl(t.difal)}")

    totals = aggregate(invoices)
    print()
    print(f"Resumo consolidado — UF de destino {collection.destination_state}")
    print(f"  Base de cálculo:  {format_brl(totals.tax_base)}")
    print(f"  ICMS destacado:   {format_brl(totals.vat_charged)}")
    print(f"  Crédito de ICMS:  {format_brl(totals.icms_credit)}")
    print(f"  DIFAL:            {format_brl(totals.difal)}")

    if json_path is not None:
        write_report(json_path, invoices)
        print(f"\nRelatório salvo em {json_path}")

    return 1 if failures else 0


def main() -> None:
    """Entry point for the Cálculo Fiscal CLI/TUI."""
    if len(sys.argv) > 1:
        match sys.argv[1]:
            case "init":
                _init_config()
                return
            case "calcular":
                sys.exit(_calcular(sys.argv[2:]))
            case "-h" | "--help" | "ajuda":
                print(USAGE)
                return

    if not _preflight():
        sys.exit(1)

    from calcfiscal.tui.app import CalculoFiscalApp

    app = CalculoFiscalApp()
    app.run()


if __name__ == "__main__":
    main()
