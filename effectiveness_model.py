"""
Modelo de efetividade tributaria.

A carga "atual" das tabelas e a carga legal; empresas recolhem em media
apenas uma fracao dela (fator de efetividade). O split payment aproxima a
arrecadacao efetiva da legal, o que gera um custo de formalizacao que se
soma ao efeito puro da mudanca de aliquota.
"""

from __future__ import annotations

from dominio import (
    PRESSAO_ALTA,
    PRESSAO_BAIXA,
    PRESSAO_DISPLAY,
    PRESSAO_MODERADA,
    PRESSAO_MUITO_ALTA,
)
from dto import EfetividadeTributaria
from formatters import formatar_percentual, formatar_reais, formatar_reais_sinal
from reference_data import FaixaCarga, FatorEfetividade, Limiares


def classificar_pressao(fator: float, limiares: Limiares) -> str:
    # Arredonda para que 1 - 0.8 caia exatamente no limite 0.20.
    lacuna = round(1.0 - fator, 6)
    if lacuna < limiares.pressao_moderada_gap:
        return PRESSAO_BAIXA
    if lacuna < limiares.pressao_alta_gap:
        return PRESSAO_MODERADA
    if lacuna < limiares.pressao_muito_alta_gap:
        return PRESSAO_ALTA
    return PRESSAO_MUITO_ALTA


def fator_pos_reforma(fator: float, convergencia: float) -> float:
    return fator + (1.0 - fator) * convergencia


def _narrativa(
    fator: float,
    carga_legal: float,
    carga_efetiva: float,
    impacto_aliquota: int,
    impacto_formalizacao: int,
    impacto_total: int,
    pressao: str,
    receita_referencia: float,
) -> str:
    partes = [
        f"Empresas deste perfil recolhem em média {formatar_percentual(fator, casas=0)} da carga legal "
        f"({formatar_percentual(carga_efetiva, casas=1, ja_percentual=True)} efetiva contra "
        f"{formatar_percentual(carga_legal, casas=1, ja_percentual=True)} legal).",
        f"Para uma receita de referência de {formatar_reais(receita_referencia, casas=0)}, a mudança de "
        f"alíquota isolada representa {formatar_reais_sinal(impacto_aliquota)} por ano.",
    ]
    if impacto_formalizacao > 0:
        partes.append(
            f"Com o split payment reduzindo a informalidade, somam-se "
            f"{formatar_reais_sinal(impacto_formalizacao)} de custo de formalização, "
            f"totalizando {formatar_reais_sinal(impacto_total)} por ano."
        )
    else:
        partes.append("Não há custo adicional de formalização para este perfil.")
    partes.append(f"Pressão de formalização: {PRESSAO_DISPLAY[pressao]}.")
    return " ".join(partes)


def calcular_efetividade(
    faixa: FaixaCarga,
    fator: FatorEfetividade,
    limiares: Limiares,
) -> EfetividadeTributaria:
    carga_legal = faixa.atual_media
    carga_efetiva = carga_legal * fator.medio
    projetada = faixa.projetada_media
    receita = limiares.faturamento_referencia
    fator_pos = fator_pos_reforma(fator.medio, limiares.convergencia_formalizacao)

    impacto_aliquota = int(round(receita * (projetada - carga_legal) / 100.0 * fator.medio))
    # fator_pos >= fator para convergencia em [0, 1]; nunca negativo.
    impacto_formalizacao = max(0, int(round(receita * projetada / 100.0 * (fator_pos - fator.medio))))
    impacto_total = impacto_aliquota + impacto_formalizacao
    pressao = classificar_pressao(fator.medio, limiares)

    return EfetividadeTributaria(
        fator_efetividade=fator.medio,
        carga_efetiva_pct=round(carga_efetiva, 2),
        carga_legal_pct=round(carga_legal, 2),
        impacto_aliquota=impacto_aliquota,
        impacto_formalizacao=impacto_formalizacao,
        impacto_total=impacto_total,
        pressao_formalizacao=pressao,
        narrative=_narrativa(
            fator.medio,
            carga_legal,
            carga_efetiva,
            impacto_aliquota,
            impacto_formalizacao,
            impacto_total,
            pressao,
            receita,
        ),
    )
