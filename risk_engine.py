from __future__ import annotations

from typing import List, Optional, Tuple

from dominio import (
    PRESSAO_ALTA,
    PRESSAO_DISPLAY,
    PRESSAO_MUITO_ALTA,
    RISCO_ALTO,
    RISCO_BAIXO,
    RISCO_CRITICO,
    RISCO_MEDIO,
    SETOR_AGRONEGOCIO,
    SETOR_SERVICOS,
    UF_NOMES,
)
from dto import ImpactoAnual, SimuladorInput
from reference_data import FaixaCarga, IncentivoUf, Limiares, PerfilSetor
from regime_utils import REGIME_NAO_SEI, REGIME_PRESUMIDO, REGIME_REAL, REGIME_SIMPLES

ALERTA_CRITICO = (
    "Impacto crítico: a carga projetada mais que dobra em relação à atual. "
    "Priorize revisão de preços, capital de giro e planejamento tributário."
)
ALERTA_SERVICOS_PRESUMIDO = (
    "Setor de serviços em Lucro Presumido: você está no grupo de maior impacto negativo."
)
ALERTA_ALIQUOTA_PLENA = (
    "Seu setor não tem alíquota reduzida: CBS e IBS incidirão pela alíquota padrão integral."
)
ALERTA_MIGRACAO_REAL = (
    "Considere avaliar migração para Lucro Real: a não-cumulatividade plena pode gerar economia com a reforma."
)
ALERTA_NAO_SEI = (
    "Regime tributário não informado: a simulação usa a faixa conservadora entre regimes. "
    "Confirme o regime com seu contador e simule novamente."
)
ALERTA_AGRO_CREDITOS = "Verifique seus créditos de ICMS acumulados antes que o imposto seja extinto."
ALERTA_SIMPLES_B2B = (
    "Empresas do Simples podem perder competitividade em vendas B2B (clientes não aproveitam crédito)."
)
ALERTA_ANO_TESTE = "2026 é o ano de teste: aproveite para adaptar seus sistemas sem penalidades severas."
ALERTA_SPLIT_PAYMENT = "Split payment começa em 2027: prepare seu fluxo de caixa."


def calcular_percentual(faixa: FaixaCarga) -> float:
    """Variacao percentual da carga media projetada sobre a atual (1 casa)."""
    atual = faixa.atual_media
    if atual <= 0:
        return 0.0
    return round((faixa.projetada_media - atual) / atual * 100.0, 1)


def classificar_risco(percentual: float, setor: str, regime: str, limiares: Limiares) -> str:
    # Servicos no Presumido concentra o maior aumento de carga.
    if setor == SETOR_SERVICOS and regime == REGIME_PRESUMIDO and percentual > limiares.risco_alto_pct:
        return RISCO_CRITICO
    if percentual > limiares.risco_critico_pct:
        return RISCO_CRITICO
    if percentual > limiares.risco_alto_pct:
        return RISCO_ALTO
    if percentual > limiares.risco_medio_pct:
        return RISCO_MEDIO
    return RISCO_BAIXO


def calcular_impacto(faixa: FaixaCarga, receita_referencia: float) -> ImpactoAnual:
    """
    Impacto anual em reais sobre a receita representativa da faixa.
    valor_min = melhor cenario (nova minima - atual maxima);
    valor_max = pior cenario (nova maxima - atual minima).
    """
    return ImpactoAnual(
        percentual=calcular_percentual(faixa),
        valor_anual=int(round(receita_referencia * (faixa.projetada_media - faixa.atual_media) / 100.0)),
        valor_min=int(round(receita_referencia * (faixa.projetada_min - faixa.atual_max) / 100.0)),
        valor_max=int(round(receita_referencia * (faixa.projetada_max - faixa.atual_min) / 100.0)),
    )


def gerar_alertas(
    inp: SimuladorInput,
    *,
    nivel_risco: str,
    percentual: float,
    perfil: PerfilSetor,
    pressao_formalizacao: str,
    tributado_icms: bool,
    incentivo: Optional[IncentivoUf],
    limiares: Limiares,
) -> Tuple[str, ...]:
    """Regras independentes, emitidas em ordem fixa de severidade decrescente."""
    alertas: List[str] = []

    if nivel_risco == RISCO_CRITICO:
        alertas.append(ALERTA_CRITICO)
    if inp.setor == SETOR_SERVICOS and inp.regime == REGIME_PRESUMIDO:
        alertas.append(ALERTA_SERVICOS_PRESUMIDO)
    if perfil.reducao is None and inp.regime in (REGIME_PRESUMIDO, REGIME_REAL):
        alertas.append(ALERTA_ALIQUOTA_PLENA)
    if inp.regime == REGIME_PRESUMIDO and percentual > limiares.migracao_lucro_real_pct:
        alertas.append(ALERTA_MIGRACAO_REAL)
    if inp.regime == REGIME_NAO_SEI:
        alertas.append(ALERTA_NAO_SEI)
    if pressao_formalizacao in (PRESSAO_ALTA, PRESSAO_MUITO_ALTA):
        alertas.append(
            f"Pressão de formalização {PRESSAO_DISPLAY[pressao_formalizacao]}: o split payment reduz a "
            "diferença entre a carga legal e a efetiva do setor, e o custo real pode superar a estimativa."
        )
    if inp.setor == SETOR_AGRONEGOCIO:
        alertas.append(ALERTA_AGRO_CREDITOS)
    if tributado_icms and incentivo is not None:
        alertas.append(
            f"{UF_NOMES.get(inp.uf, inp.uf)} possui incentivos de ICMS em extinção ({incentivo.programa}). "
            "Reavalie a margem dos produtos incentivados."
        )
    if inp.regime == REGIME_SIMPLES:
        alertas.append(ALERTA_SIMPLES_B2B)
    alertas.append(ALERTA_ANO_TESTE)
    alertas.append(ALERTA_SPLIT_PAYMENT)

    return tuple(dict.fromkeys(alertas))
