"""
Enumerador de combinacoes para geracao de paginas estaticas.

Itera externamente sobre o motor puro: setor x UF, setor x regime e uma
pagina de ICMS por UF. O motor nao conhece este modulo.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from dominio import FAIXA_360K_4_8M, SETOR_DISPLAY, SETOR_OUTRO, SETORES, UF_NOMES, UFS
from dto import SimuladorInput, SimuladorResult
from formatters import formatar_percentual
from reference_data import TabelasReferencia, get_tabelas
from regime_utils import REGIME_SLUGS, REGIMES_CONHECIDOS, regime_display
from state_comparator import faixa_icms_estados, resumo_icms_uf
from tax_engine import simular

logger = logging.getLogger(__name__)

FAIXA_PAGINAS = FAIXA_360K_4_8M
UF_REPRESENTATIVA = "SP"

SETORES_PAGINAS: Tuple[str, ...] = tuple(s for s in SETORES if s != SETOR_OUTRO)


def combinacoes_setor_uf() -> Iterator[Tuple[str, str]]:
    for setor in SETORES_PAGINAS:
        for uf in UFS:
            yield setor, uf


def combinacoes_setor_regime() -> Iterator[Tuple[str, str]]:
    for setor in SETORES_PAGINAS:
        for regime in REGIMES_CONHECIDOS:
            yield setor, regime


def entradas_setor_uf() -> Iterator[SimuladorInput]:
    """Cada par setor x UF expande para os tres regimes conhecidos."""
    for setor, uf in combinacoes_setor_uf():
        for regime in REGIMES_CONHECIDOS:
            yield SimuladorInput(regime=regime, setor=setor, faturamento=FAIXA_PAGINAS, uf=uf)


def entradas_setor_regime() -> Iterator[SimuladorInput]:
    for setor, regime in combinacoes_setor_regime():
        yield SimuladorInput(regime=regime, setor=setor, faturamento=FAIXA_PAGINAS, uf=UF_REPRESENTATIVA)


def simular_lote(
    entradas: Iterable[SimuladorInput],
    workers: int = 1,
    tabelas: Optional[TabelasReferencia] = None,
) -> Iterator[Tuple[SimuladorInput, SimuladorResult]]:
    """Pares (entrada, resultado) na ordem das entradas."""
    snapshot = tabelas if tabelas is not None else get_tabelas()
    lista = list(entradas)
    if workers <= 1:
        for inp in lista:
            yield inp, simular(inp, snapshot)
        return

    with ThreadPoolExecutor(max_workers=workers) as executor:
        # map preserva a ordem de submissao.
        for inp, result in zip(lista, executor.map(lambda e: simular(e, snapshot), lista)):
            yield inp, result


def _slug_setor(setor: str) -> str:
    return setor.replace("_", "-")


def _resumo_regime(result: SimuladorResult) -> Dict[str, Any]:
    return {
        "regime": result.entrada.regime,
        "regime_nome": regime_display(result.entrada.regime),
        "nivel_risco": result.nivel_risco,
        "percentual": result.impacto_anual.percentual,
        "valor_anual": result.impacto_anual.valor_anual,
        "alerta_principal": result.alertas[0] if result.alertas else None,
    }


def pagina_setor_uf(setor: str, uf: str, tabelas: Optional[TabelasReferencia] = None) -> Dict[str, Any]:
    snapshot = tabelas if tabelas is not None else get_tabelas()
    resultados = [
        simular(SimuladorInput(regime=regime, setor=setor, faturamento=FAIXA_PAGINAS, uf=uf), snapshot)
        for regime in REGIMES_CONHECIDOS
    ]
    base = resultados[0]
    return {
        "tipo": "setor_uf",
        "slug": f"{_slug_setor(setor)}-{uf.lower()}",
        "titulo": f"Reforma tributária para {SETOR_DISPLAY.get(setor, setor)} em {UF_NOMES.get(uf, uf)}",
        "setor": setor,
        "uf": uf,
        "uf_nome": UF_NOMES.get(uf, uf),
        "faturamento": FAIXA_PAGINAS,
        "regimes": [_resumo_regime(r) for r in resultados],
        "comparativo_regimes": [linha.to_dict() for linha in base.comparativo_regimes],
        "ajuste_icms": base.ajuste_icms.to_dict() if base.ajuste_icms is not None else None,
        "timeline": base.timeline.to_dict(),
        "metodologia": base.metodologia.to_dict(),
    }


def pagina_setor_regime(setor: str, regime: str, tabelas: Optional[TabelasReferencia] = None) -> Dict[str, Any]:
    snapshot = tabelas if tabelas is not None else get_tabelas()
    result = simular(
        SimuladorInput(regime=regime, setor=setor, faturamento=FAIXA_PAGINAS, uf=UF_REPRESENTATIVA),
        snapshot,
    )
    payload = result.to_dict()
    payload.update(
        {
            "tipo": "setor_regime",
            "slug": f"{_slug_setor(setor)}-{REGIME_SLUGS.get(regime, regime)}",
            "titulo": f"Reforma tributária para {SETOR_DISPLAY.get(setor, setor)} no {regime_display(regime)}",
        }
    )
    return payload


def pagina_icms_uf(uf: str, tabelas: Optional[TabelasReferencia] = None) -> Dict[str, Any]:
    snapshot = tabelas if tabelas is not None else get_tabelas()
    aliquota = snapshot.icms_modal_rate(uf).valor
    (uf_min, rate_min), (uf_max, rate_max) = faixa_icms_estados(snapshot)
    incentivo = snapshot.incentivo_uf(uf)
    return {
        "tipo": "icms_uf",
        "slug": f"icms-{uf.lower()}",
        "titulo": f"ICMS {UF_NOMES.get(uf, uf)} e a reforma tributária",
        "uf": uf,
        "uf_nome": UF_NOMES.get(uf, uf),
        "icms_rate": aliquota.valor,
        "icms_rate_texto": formatar_percentual(aliquota.valor, casas=1, ja_percentual=True),
        "icms_referencia": round(snapshot.icms_referencia, 2),
        "fonte": aliquota.fonte,
        "menor_aliquota": {"uf": uf_min, "aliquota": rate_min},
        "maior_aliquota": {"uf": uf_max, "aliquota": rate_max},
        "incentivo_fiscal": incentivo.programa if incentivo is not None else None,
        "setores": {setor: ajuste.to_dict() for setor, ajuste in resumo_icms_uf(uf, snapshot).items()},
    }


def gerar_paginas(
    workers: int = 1, tabelas: Optional[TabelasReferencia] = None
) -> Iterator[Tuple[str, Dict[str, Any]]]:
    """Todas as paginas como (slug, payload), na ordem setor x UF, setor x regime, ICMS."""
    snapshot = tabelas if tabelas is not None else get_tabelas()
    tarefas: List[Tuple[Any, Tuple[str, ...]]] = []
    tarefas.extend((pagina_setor_uf, par) for par in combinacoes_setor_uf())
    tarefas.extend((pagina_setor_regime, par) for par in combinacoes_setor_regime())
    tarefas.extend((pagina_icms_uf, (uf,)) for uf in UFS)

    def executar(tarefa: Tuple[Any, Tuple[str, ...]]) -> Dict[str, Any]:
        funcao, args = tarefa
        return funcao(*args, tabelas=snapshot)

    if workers <= 1:
        for payload in map(executar, tarefas):
            yield payload["slug"], payload
        logger.info("paginas geradas: %d", len(tarefas))
        return

    with ThreadPoolExecutor(max_workers=workers) as executor:
        for payload in executor.map(executar, tarefas):
            yield payload["slug"], payload
    logger.info("paginas geradas: %d (workers=%d)", len(tarefas), workers)
