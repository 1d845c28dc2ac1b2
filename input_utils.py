from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple, Union

from dominio import (
    FAIXAS_FATURAMENTO,
    canonicalize_faixa,
    canonicalize_setor,
    canonicalize_uf,
    faixa_por_receita,
)
from dto import SimuladorInput
from regime_utils import canonicalize_regime

CAMPOS_OBRIGATORIOS = ("setor", "uf", "regime", "faturamento")

_RE_SUFIXO = re.compile(r"^([\d.,]+)\s*(mil|k|mi|m|milhoes|milhões)?$")
_MULTIPLICADORES = {"mil": 1_000.0, "k": 1_000.0, "mi": 1_000_000.0, "m": 1_000_000.0,
                    "milhoes": 1_000_000.0, "milhões": 1_000_000.0}


def interpretar_receita(valor: Any) -> Optional[float]:
    """
    Aceita:
      - 1500000
      - 1.500.000,00
      - R$ 1,5 mi
      - 800k
    Retorna receita anual em reais, ou None quando nao interpretavel.
    """
    if isinstance(valor, bool):
        return None
    if isinstance(valor, (int, float)):
        return float(valor) if valor >= 0 else None

    raw = str(valor or "").strip().lower().replace("r$", "").replace(" ", "")
    match = _RE_SUFIXO.match(raw)
    if not match:
        return None
    numero, sufixo = match.groups()
    if "," in numero:
        numero = numero.replace(".", "").replace(",", ".")
    elif numero.count(".") > 1 or re.search(r"\.\d{3}$", numero):
        # 1.500.000, 360.000 ou 1.500 mil: pontos como separador de milhar
        numero = numero.replace(".", "")
    try:
        receita = float(numero)
    except ValueError:
        return None
    return receita * _MULTIPLICADORES.get(sufixo or "", 1.0)


def _resolver_faturamento(valor: Any) -> Optional[str]:
    faixa = canonicalize_faixa(valor)
    if faixa is not None:
        return faixa
    receita = interpretar_receita(valor)
    if receita is None:
        return None
    return faixa_por_receita(receita)


def validar_simulador_input(payload: Dict[str, Any]) -> Tuple[bool, Union[SimuladorInput, str]]:
    """
    Valida e canonicaliza a entrada do simulador.
    Retorna (True, SimuladorInput) ou (False, mensagem_erro).
    """
    if not isinstance(payload, dict):
        return False, "Entrada inválida: esperado um objeto com setor, uf, regime e faturamento."

    faltantes = [campo for campo in CAMPOS_OBRIGATORIOS if str(payload.get(campo) or "").strip() == ""]
    if faltantes:
        return False, f"Campos obrigatórios ausentes: {', '.join(faltantes)}."

    setor = canonicalize_setor(payload["setor"])
    if setor is None:
        return False, f"Setor inválido: '{payload['setor']}'. Informe um setor da lista (ex.: comercio, servicos)."

    uf = canonicalize_uf(payload["uf"])
    if uf is None:
        return False, f"UF inválida: '{payload['uf']}'. Use a sigla do estado (ex.: SP, RJ)."

    regime_info = canonicalize_regime(payload["regime"])
    if regime_info is None:
        return False, (
            f"Regime inválido: '{payload['regime']}'. "
            "Use simples, lucro_presumido, lucro_real ou nao_sei."
        )

    faturamento = _resolver_faturamento(payload["faturamento"])
    if faturamento is None:
        return False, (
            f"Faturamento inválido: '{payload['faturamento']}'. "
            f"Use uma faixa ({', '.join(FAIXAS_FATURAMENTO)}) ou a receita anual em reais."
        )

    return True, SimuladorInput(
        regime=regime_info["regime_code"],
        setor=setor,
        faturamento=faturamento,
        uf=uf,
    )
