from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app_config import configurar_logging, resolve_demo_mode, resolve_output_targets
from combinations import gerar_paginas
from file_exporter import salvar_json
from reference_data import carregar_tabelas

logger = logging.getLogger(__name__)


def gerar_arquivos(pasta: str, workers: int = 1, ruleset_id: Optional[str] = None) -> Dict[str, int]:
    """Grava um JSON por pagina em `pasta` e devolve a contagem por tipo."""
    tabelas = carregar_tabelas(ruleset_id)
    contagem: Dict[str, int] = {}
    for slug, payload in gerar_paginas(workers=workers, tabelas=tabelas):
        salvar_json(payload, slug, pasta)
        tipo = str(payload.get("tipo", "outro"))
        contagem[tipo] = contagem.get(tipo, 0) + 1
        logger.debug("pagina gravada: %s", slug)
    logger.info("paginas gravadas em %s: %s", pasta, contagem)
    return contagem


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Gera os payloads JSON das paginas estaticas (setor x UF, setor x regime, ICMS).")
    parser.add_argument("--output-dir", default=None)
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--ruleset-id", default=None)
    parser.add_argument("--demo", action="store_true")
    args = parser.parse_args(argv)

    configurar_logging()
    pasta = args.output_dir or resolve_output_targets(resolve_demo_mode(args.demo))["paginas_pasta"]

    try:
        contagem = gerar_arquivos(pasta, workers=max(1, args.workers), ruleset_id=args.ruleset_id)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Erro ao carregar ruleset: {exc}")
        return 2

    total = sum(contagem.values())
    print(f"{total} paginas geradas em {pasta}")
    for tipo, quantidade in sorted(contagem.items()):
        print(f"- {tipo}: {quantidade}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
