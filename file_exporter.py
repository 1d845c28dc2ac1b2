import json
import os
from datetime import datetime
from typing import Any, Dict


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


def salvar_relatorio_txt(conteudo: str, nome_base: str = "simulacao", pasta: str = "outputs") -> str:
    os.makedirs(pasta, exist_ok=True)
    caminho = os.path.join(pasta, f"{nome_base}_{_timestamp()}.txt")

    with open(caminho, "w", encoding="utf-8") as f:
        f.write(conteudo)

    return caminho


def salvar_json(payload: Dict[str, Any], nome_arquivo: str, pasta: str) -> str:
    """Grava JSON com nome fixo (sobrescreve); usado pelas paginas geradas."""
    os.makedirs(pasta, exist_ok=True)
    caminho = os.path.join(pasta, nome_arquivo if nome_arquivo.endswith(".json") else f"{nome_arquivo}.json")

    with open(caminho, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

    return caminho


def salvar_resultado_json(payload: Dict[str, Any], nome_base: str = "simulacao", pasta: str = "outputs") -> str:
    return salvar_json(payload, f"{nome_base}_{_timestamp()}.json", pasta)
