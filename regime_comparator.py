from __future__ import annotations

from typing import Tuple

from dto import LinhaComparativo
from reference_data import TabelasReferencia
from regime_utils import REGIMES_CONHECIDOS, regime_display
from risk_engine import calcular_percentual, classificar_risco


def linha_regime(regime: str, setor: str, tabelas: TabelasReferencia) -> LinhaComparativo:
    # Sem registro: linhas de comparacao nao afetam a confianca do resultado.
    faixa = tabelas.faixa_carga_regime(regime, setor).valor
    percentual = calcular_percentual(faixa)
    return LinhaComparativo(
        regime=regime,
        regime_nome=regime_display(regime),
        carga_atual_min=faixa.atual_min,
        carga_atual_max=faixa.atual_max,
        carga_nova_min=round(faixa.projetada_min, 2),
        carga_nova_max=round(faixa.projetada_max, 2),
        risco=classificar_risco(percentual, setor, regime, tabelas.limiares),
        percentual=percentual,
    )


def comparar_regimes(setor: str, tabelas: TabelasReferencia) -> Tuple[LinhaComparativo, ...]:
    """Sempre tres linhas (Simples, Presumido, Real), independente do regime informado."""
    return tuple(linha_regime(regime, setor, tabelas) for regime in REGIMES_CONHECIDOS)
