import json
import logging
import os
import sys
from copy import deepcopy
from typing import Any, Dict, Tuple

DEFAULT_RULESET_ID = "BR_REFORMA_2026_V1"

ARQUIVO_METADATA = "metadata.json"
ARQUIVO_FATURAMENTO = "faturamento.json"
ARQUIVO_ICMS_UF = "icms_uf.json"
ARQUIVO_SETORES = "setores.json"
ARQUIVO_CARGA_ATUAL = "carga_atual.json"
ARQUIVO_AJUSTE_REGIME = "ajuste_regime.json"
ARQUIVO_EFETIVIDADE = "efetividade.json"
ARQUIVO_TRANSICAO = "transicao.json"
ARQUIVO_INCENTIVOS_UF = "incentivos_uf.json"
ARQUIVO_THRESHOLDS = "thresholds.json"

RULESET_FILES: Tuple[str, ...] = (
    ARQUIVO_METADATA,
    ARQUIVO_FATURAMENTO,
    ARQUIVO_ICMS_UF,
    ARQUIVO_SETORES,
    ARQUIVO_CARGA_ATUAL,
    ARQUIVO_AJUSTE_REGIME,
    ARQUIVO_EFETIVIDADE,
    ARQUIVO_TRANSICAO,
    ARQUIVO_INCENTIVOS_UF,
    ARQUIVO_THRESHOLDS,
)

logger = logging.getLogger(__name__)

_CACHE: Dict[Tuple[str, str], Dict[str, Any]] = {}


def _runtime_base_dir() -> str:
    """
    Resolve diretorio base para modo normal e executavel PyInstaller.
    """
    if getattr(sys, "frozen", False):
        meipass = getattr(sys, "_MEIPASS", None)
        if isinstance(meipass, str) and meipass.strip():
            return meipass
        return os.path.dirname(sys.executable)
    return os.path.dirname(os.path.abspath(__file__))


def _rulesets_dir() -> str:
    return os.path.join(_runtime_base_dir(), "rulesets")


def _ruleset_dir(ruleset_id: str) -> str:
    return os.path.join(_rulesets_dir(), ruleset_id)


def _load_json(ruleset_id: str, filename: str) -> Dict[str, Any]:
    key = (ruleset_id, filename)
    if key in _CACHE:
        return deepcopy(_CACHE[key])

    ruleset_path = _ruleset_dir(ruleset_id)
    if not os.path.isdir(ruleset_path):
        raise FileNotFoundError(f"Ruleset '{ruleset_id}' não encontrado em {ruleset_path}.")

    file_path = os.path.join(ruleset_path, filename)
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"Arquivo '{filename}' não encontrado para ruleset '{ruleset_id}'.")

    with open(file_path, "r", encoding="utf-8-sig") as f:
        payload = json.load(f)

    if not isinstance(payload, dict):
        raise ValueError(f"Arquivo '{filename}' do ruleset '{ruleset_id}' deve conter objeto JSON.")

    logger.debug("ruleset %s: %s carregado de %s", ruleset_id, filename, file_path)
    _CACHE[key] = payload
    return deepcopy(payload)


def clear_cache() -> None:
    _CACHE.clear()


def load_ruleset(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_METADATA)


def load_file(ruleset_id: str, filename: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, filename)


def load_all(ruleset_id: str) -> Dict[str, Dict[str, Any]]:
    """Carrega todos os arquivos do ruleset, indexados pelo nome do arquivo."""
    return {filename: _load_json(ruleset_id, filename) for filename in RULESET_FILES}


def get_faturamento(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_FATURAMENTO)


def get_icms_uf(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_ICMS_UF)


def get_setores(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_SETORES)


def get_carga_atual(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_CARGA_ATUAL)


def get_ajuste_regime(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_AJUSTE_REGIME)


def get_efetividade(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_EFETIVIDADE)


def get_transicao(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_TRANSICAO)


def get_incentivos_uf(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_INCENTIVOS_UF)


def get_thresholds(ruleset_id: str) -> Dict[str, Any]:
    return _load_json(ruleset_id, ARQUIVO_THRESHOLDS)
