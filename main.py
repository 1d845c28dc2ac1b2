from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from app_config import configurar_logging, resolve_demo_mode, resolve_output_targets
from file_exporter import salvar_relatorio_txt, salvar_resultado_json
from input_utils import validar_simulador_input
from pdf_exporter import salvar_relatorio_pdf
from reference_data import carregar_tabelas
from report_builder import montar_relatorio_simulacao
from tax_engine import simular

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RULESET = 1
EXIT_VALIDACAO = 2


def nome_arquivo_base(setor: str, uf: str, regime: str) -> str:
    return f"simulacao_{setor}_{uf.lower()}_{regime}"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Simula o impacto da reforma tributaria (IBS/CBS, 2026-2033) para um perfil de empresa."
    )
    parser.add_argument("--setor", required=False, help="Setor (ex.: comercio, servicos, varejo)")
    parser.add_argument("--uf", required=False, help="Sigla do estado (ex.: SP)")
    parser.add_argument("--regime", required=False, help="simples | lucro_presumido | lucro_real | nao_sei")
    parser.add_argument("--faturamento", required=False, help="Faixa (ex.: 360k_4.8m, epp)")
    parser.add_argument("--receita", required=False, help="Receita anual em reais; substitui --faturamento")
    parser.add_argument("--json", action="store_true", help="Imprime o resultado em JSON no lugar do relatorio")
    parser.add_argument("--txt", action="store_true", help="Salva o relatorio em TXT")
    parser.add_argument("--salvar-json", action="store_true", help="Salva o resultado em JSON (independe de --txt)")
    parser.add_argument("--pdf", action="store_true", help="Salva o relatorio em PDF")
    parser.add_argument("--ruleset-id", default=None)
    parser.add_argument("--demo", action="store_true", help="Grava arquivos nas pastas de demonstracao")
    parser.add_argument("--log-level", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configurar_logging(args.log_level)

    payload = {
        "setor": args.setor,
        "uf": args.uf,
        "regime": args.regime,
        "faturamento": args.receita if args.receita else args.faturamento,
    }
    ok, valor = validar_simulador_input(payload)
    if not ok:
        print(f"Erro: {valor}")
        return EXIT_VALIDACAO

    try:
        tabelas = carregar_tabelas(args.ruleset_id)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Erro ao carregar ruleset: {exc}")
        return EXIT_RULESET

    result = simular(valor, tabelas)
    relatorio = montar_relatorio_simulacao(result)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(relatorio)

    targets = resolve_output_targets(resolve_demo_mode(args.demo))
    nome_base = nome_arquivo_base(valor.setor, valor.uf, valor.regime)
    if args.txt:
        caminho = salvar_relatorio_txt(relatorio, nome_base=nome_base, pasta=targets["outputs_txt_pasta"])
        print(f"\nRelatório TXT salvo em: {caminho}")
    if args.salvar_json:
        caminho = salvar_resultado_json(result.to_dict(), nome_base=nome_base, pasta=targets["outputs_txt_pasta"])
        print(f"\nResultado JSON salvo em: {caminho}")
    if args.pdf:
        caminho = salvar_relatorio_pdf(relatorio, nome_base=nome_base, pasta=targets["outputs_pdf_pasta"])
        print(f"\nRelatório PDF salvo em: {caminho}")

    logger.info("simulacao concluida: %s", nome_base)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
