from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from ruleset_loader import DEFAULT_RULESET_ID

DEMO_ENV_VAR = "RIE_DEMO"
RULESET_ENV_VAR = "RIE_RULESET_ID"
LOG_LEVEL_ENV_VAR = "RIE_LOG_LEVEL"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_demo_mode(flag_enabled: bool = False) -> bool:
    """
    Resolve o modo DEMO por OR entre variavel de ambiente e flag da CLI.
    """
    return _is_truthy(os.getenv(DEMO_ENV_VAR)) or bool(flag_enabled)


def resolve_ruleset_id(explicit: Optional[str] = None) -> str:
    """Prioridade: argumento explicito > variavel de ambiente > ruleset padrao."""
    if isinstance(explicit, str) and explicit.strip():
        return explicit.strip()
    env_value = os.getenv(RULESET_ENV_VAR)
    if env_value and env_value.strip():
        return env_value.strip()
    return DEFAULT_RULESET_ID


def resolve_output_targets(demo_mode: bool) -> Dict[str, str]:
    """
    Retorna destinos das exportacoes (relatorios e paginas geradas).
    """
    if demo_mode:
        return {
            "outputs_txt_pasta": "outputs_demo",
            "outputs_pdf_pasta": "outputs_demo_pdfs",
            "paginas_pasta": "paginas_demo",
            "auditoria_pasta": "outputs_demo",
        }
    return {
        "outputs_txt_pasta": "outputs",
        "outputs_pdf_pasta": "outputs_pdfs",
        "paginas_pasta": "paginas",
        "auditoria_pasta": "outputs",
    }


def resolve_log_level(explicit: Optional[str] = None) -> int:
    raw = explicit or os.getenv(LOG_LEVEL_ENV_VAR) or "WARNING"
    level = logging.getLevelName(raw.strip().upper())
    if isinstance(level, int):
        return level
    return logging.WARNING


def configurar_logging(level: Optional[str] = None) -> None:
    """Configura logging raiz; chamado apenas pelos pontos de entrada (CLI/tools)."""
    logging.basicConfig(level=resolve_log_level(level), format=_LOG_FORMAT)
