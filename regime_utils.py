from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

REGIME_SIMPLES = "simples"
REGIME_PRESUMIDO = "lucro_presumido"
REGIME_REAL = "lucro_real"
REGIME_NAO_SEI = "nao_sei"

REGIME_DISPLAY_SIMPLES = "Simples Nacional"
REGIME_DISPLAY_PRESUMIDO = "Lucro Presumido"
REGIME_DISPLAY_REAL = "Lucro Real"
REGIME_DISPLAY_NAO_SEI = "Não informado"

REGIMES: Tuple[str, ...] = (REGIME_SIMPLES, REGIME_PRESUMIDO, REGIME_REAL, REGIME_NAO_SEI)

# Regimes efetivos, usados no comparativo (sempre 3 linhas).
REGIMES_CONHECIDOS: Tuple[str, ...] = (REGIME_SIMPLES, REGIME_PRESUMIDO, REGIME_REAL)

_DISPLAY_POR_CODIGO: Dict[str, str] = {
    REGIME_SIMPLES: REGIME_DISPLAY_SIMPLES,
    REGIME_PRESUMIDO: REGIME_DISPLAY_PRESUMIDO,
    REGIME_REAL: REGIME_DISPLAY_REAL,
    REGIME_NAO_SEI: REGIME_DISPLAY_NAO_SEI,
}

REGIME_SLUGS: Dict[str, str] = {
    REGIME_SIMPLES: "simples-nacional",
    REGIME_PRESUMIDO: "lucro-presumido",
    REGIME_REAL: "lucro-real",
}


def _normalize_text(value: Any) -> str:
    return str(value or "").strip()


def _normalize_text_lower(value: Any) -> str:
    return _normalize_text(value).lower()


def regime_display(regime_code: str) -> str:
    return _DISPLAY_POR_CODIGO.get(regime_code, REGIME_DISPLAY_NAO_SEI)


def canonicalize_regime(regime: Any) -> Optional[Dict[str, str]]:
    """
    Canonicaliza regime para contrato interno unico:
    - regime_code: simples|lucro_presumido|lucro_real|nao_sei
    - regime_display: rotulo de relatorio
    Aceita codigo, rotulo ("Lucro Real") ou slug ("lucro-real").
    Retorna None quando o valor nao corresponde a nenhum regime.
    """
    raw_l = _normalize_text_lower(regime)
    if not raw_l:
        return None

    candidato = raw_l.replace("-", "_").replace(" ", "_")
    if candidato in _DISPLAY_POR_CODIGO:
        code = candidato
    elif raw_l in ("simples nacional", "simples_nacional", "simples-nacional", "mei"):
        code = REGIME_SIMPLES
    elif raw_l in (_normalize_text_lower(REGIME_DISPLAY_PRESUMIDO), "presumido"):
        code = REGIME_PRESUMIDO
    elif raw_l in (_normalize_text_lower(REGIME_DISPLAY_REAL), "real"):
        code = REGIME_REAL
    elif raw_l in ("nao sei", "não sei", "não informado", "nao informado", "desconhecido"):
        code = REGIME_NAO_SEI
    else:
        return None

    return {"regime_code": code, "regime_display": regime_display(code)}
