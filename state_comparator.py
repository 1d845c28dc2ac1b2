from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from dominio import (
    DIRECAO_DESFAVORAVEL,
    DIRECAO_FAVORAVEL,
    DIRECAO_NEUTRO,
    SETORES,
    UF_NOMES,
    uf_locativo,
)
from dto import AjusteIcms
from formatters import formatar_percentual, formatar_pp
from reference_data import RegistroConsultas, TabelasReferencia


def classificar_direcao(ajuste_pp: float, epsilon_pp: float) -> str:
    if ajuste_pp < -epsilon_pp:
        return DIRECAO_FAVORAVEL
    if ajuste_pp > epsilon_pp:
        return DIRECAO_DESFAVORAVEL
    return DIRECAO_NEUTRO


def _narrativa(uf: str, rate: float, referencia: float, ajuste_pp: float, impacto_pp: float, direcao: str) -> str:
    base = (
        f"A alíquota modal de ICMS {uf_locativo(uf)} é {formatar_percentual(rate, casas=1, ja_percentual=True)}, "
        f"contra a referência nacional de {formatar_percentual(referencia, casas=2, ja_percentual=True)} "
        f"({formatar_pp(ajuste_pp)})."
    )
    if direcao == DIRECAO_FAVORAVEL:
        return (
            f"{base} Por partir de uma alíquota abaixo da média, a harmonização pelo IBS tende a ser "
            f"favorável à sua carga relativa (efeito estimado de {formatar_pp(impacto_pp)} sobre a receita)."
        )
    if direcao == DIRECAO_DESFAVORAVEL:
        return (
            f"{base} A alíquota estadual acima da média pesa sobre a carga atual; o efeito estimado "
            f"sobre a receita é de {formatar_pp(impacto_pp)} até a extinção do ICMS."
        )
    return f"{base} A diferença é pequena: o ICMS estadual não altera de forma relevante sua projeção."


def calcular_ajuste_icms(
    setor: str,
    uf: str,
    tabelas: TabelasReferencia,
    registro: Optional[RegistroConsultas] = None,
) -> Optional[AjusteIcms]:
    """Ajuste estadual de ICMS; None para setores nao tributados pelo ICMS."""
    if not tabelas.setor_tributado_icms(setor):
        return None

    aliquota = tabelas.icms_modal_rate(uf, registro).valor
    referencia = tabelas.icms_referencia
    margem = tabelas.margem_bruta(setor)
    ajuste_pp = round(aliquota.valor - referencia, 2)
    impacto_pp = round(ajuste_pp * margem, 2)
    direcao = classificar_direcao(ajuste_pp, tabelas.limiares.icms_neutro_epsilon_pp)
    incentivo = tabelas.incentivo_uf(uf)

    return AjusteIcms(
        uf=uf,
        uf_nome=UF_NOMES.get(uf, uf),
        icms_rate=aliquota.valor,
        icms_referencia=round(referencia, 2),
        margem_bruta=margem,
        ajuste_pp=ajuste_pp,
        impacto_carga_pp=impacto_pp,
        direcao=direcao,
        narrative=_narrativa(uf, aliquota.valor, referencia, ajuste_pp, impacto_pp, direcao),
        fonte=aliquota.fonte,
        incentivo_fiscal=incentivo.programa if incentivo is not None else None,
    )


def resumo_icms_uf(uf: str, tabelas: TabelasReferencia) -> Dict[str, AjusteIcms]:
    """Ajuste de ICMS de todos os setores tributados pelo ICMS em uma UF."""
    resumo: Dict[str, AjusteIcms] = {}
    for setor in SETORES:
        ajuste = calcular_ajuste_icms(setor, uf, tabelas)
        if ajuste is not None:
            resumo[setor] = ajuste
    return resumo


def faixa_icms_estados(tabelas: TabelasReferencia) -> Tuple[Tuple[str, float], Tuple[str, float]]:
    """(UF de menor aliquota, valor), (UF de maior aliquota, valor); empates por sigla."""
    ordenadas: List[Tuple[str, float]] = sorted(
        ((uf, a.valor) for uf, a in tabelas.icms_uf.items()),
        key=lambda item: (item[1], item[0]),
    )
    menor = ordenadas[0]
    maior = max(ordenadas, key=lambda item: item[1])
    return menor, maior
