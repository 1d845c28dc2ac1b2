from __future__ import annotations

from typing import Dict, Tuple

from dominio import RISCO_ALTO, RISCO_BAIXO, RISCO_CRITICO, RISCO_MEDIO
from dto import EntradaTimeline, ProjecaoAno, Timeline
from reference_data import FaixaCarga, TabelasReferencia

NARRATIVAS: Dict[str, str] = {
    RISCO_CRITICO: (
        "A transição exige ação imediata: use 2026, o ano de teste, para reprecificar e revisar o regime "
        "antes que a CBS entre em vigor pleno em 2027. Cada etapa do IBS entre 2029 e 2033 aumenta a "
        "pressão sobre a sua margem."
    ),
    RISCO_ALTO: (
        "O aumento de carga se concentra a partir de 2027, com a CBS plena e o split payment. Planeje "
        "preços e capital de giro ano a ano, acompanhando a elevação gradual do IBS até 2033."
    ),
    RISCO_MEDIO: (
        "O impacto é moderado e distribuído ao longo da transição. Adapte sistemas em 2026 e "
        "acompanhe as alíquotas definitivas a cada etapa até 2033."
    ),
    RISCO_BAIXO: (
        "Seu perfil tende a ser pouco afetado ou até beneficiado. Aproveite a transição para "
        "organizar créditos e documentação, garantindo o aproveitamento pleno do novo sistema."
    ),
}


def gerar_timeline(nivel_risco: str, tabelas: TabelasReferencia) -> Timeline:
    """Calendario fixo 2026-2033; apenas a narrativa depende do nivel de risco."""
    entries = tuple(
        EntradaTimeline(
            ano=marco.ano,
            descricao=marco.descricao,
            aliquota_ibs=marco.aliquota_ibs,
            aliquota_cbs=marco.aliquota_cbs,
            fonte=marco.fonte,
        )
        for marco in tabelas.marcos_transicao
    )
    return Timeline(entries=entries, narrative=NARRATIVAS.get(nivel_risco, NARRATIVAS[RISCO_MEDIO]))


def fontes_timeline(tabelas: TabelasReferencia) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(marco.fonte for marco in tabelas.marcos_transicao))


def projetar_anos(faixa: FaixaCarga, receita: float, tabelas: TabelasReferencia) -> Tuple[ProjecaoAno, ...]:
    """
    Carga estimada por ano, misturando sistema atual e novo pela
    participacao do novo sistema: p = min((ibs + cbs) / aliquota plena, 1).
    """
    plena = tabelas.aliquota_plena_ibs + tabelas.aliquota_plena_cbs
    atual = faixa.atual_media
    projetada = faixa.projetada_media
    imposto_atual = receita * atual / 100.0

    linhas = []
    for marco in tabelas.marcos_transicao:
        p = min((marco.aliquota_ibs + marco.aliquota_cbs) / plena, 1.0)
        carga = atual * (1.0 - p) + projetada * p
        imposto = receita * carga / 100.0
        linhas.append(
            ProjecaoAno(
                ano=marco.ano,
                carga_estimada_pct=round(carga, 2),
                imposto_estimado=int(round(imposto)),
                diferenca_vs_atual=int(round(imposto - imposto_atual)),
            )
        )
    return tuple(linhas)
