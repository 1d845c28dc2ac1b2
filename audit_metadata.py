from __future__ import annotations

from typing import Iterable, List, Optional

from dominio import CONFIANCA_ALTA, CONFIANCA_BAIXA, CONFIANCA_MEDIA, SETOR_OUTRO
from dto import Metodologia, SimuladorInput
from reference_data import (
    DIMENSAO_REGIME,
    DIMENSAO_SETOR,
    DIMENSAO_UF,
    MOTIVO_REGIME_NAO_INFORMADO,
    MOTIVO_SETOR_GENERICO,
    RegistroConsultas,
    TabelasReferencia,
)
from regime_utils import REGIME_NAO_SEI, REGIME_SIMPLES

LIMITACOES_BASE = (
    "Alíquotas finais de IBS/CBS ainda não foram definidas pelo Senado Federal.",
    "A simulação usa médias por faixa de faturamento, não valores exatos.",
    "Créditos tributários dependem da estrutura de custos individual de cada empresa.",
    "A carga tributária 'atual' reflete a média efetiva do setor (dados públicos da Receita Federal), "
    "que pode ser menor que a alíquota legal. Empresas 100% formalizadas terão impacto menor que o estimado.",
    "Esta simulação não substitui consultoria tributária profissional.",
)

LIMITACAO_NAO_SEI = MOTIVO_REGIME_NAO_INFORMADO
LIMITACAO_SIMPLES = "Impacto no Simples é predominantemente indireto (competitividade B2B)."
LIMITACAO_SETOR_GENERICO = MOTIVO_SETOR_GENERICO

_RESUMO_POR_CONFIANCA = {
    CONFIANCA_ALTA: "Estimativa com confiança alta: todas as tabelas consultadas tinham linha específica para o seu perfil.",
    CONFIANCA_MEDIA: "Estimativa com confiança média: uma das dimensões (setor ou UF) usou valor padrão documentado.",
    CONFIANCA_BAIXA: "Estimativa com confiança baixa: regime não informado ou mais de uma dimensão usou valor padrão.",
}


def determinar_confianca(registro: RegistroConsultas) -> str:
    """Deriva a confianca exclusivamente do registro de consultas."""
    degradadas = registro.dimensoes_degradadas()
    if DIMENSAO_REGIME in degradadas:
        return CONFIANCA_BAIXA
    n = sum(1 for dimensao in (DIMENSAO_SETOR, DIMENSAO_UF) if dimensao in degradadas)
    if n == 0:
        return CONFIANCA_ALTA
    if n == 1:
        return CONFIANCA_MEDIA
    return CONFIANCA_BAIXA


def montar_limitacoes(inp: SimuladorInput, registro: RegistroConsultas) -> List[str]:
    limitacoes: List[str] = list(LIMITACOES_BASE)
    if inp.regime == REGIME_NAO_SEI:
        limitacoes.append(LIMITACAO_NAO_SEI)
    if inp.regime == REGIME_SIMPLES:
        limitacoes.append(LIMITACAO_SIMPLES)
    if inp.setor == SETOR_OUTRO:
        limitacoes.append(LIMITACAO_SETOR_GENERICO)
    limitacoes.extend(registro.motivos())
    return list(dict.fromkeys(limitacoes))


def montar_metodologia(
    inp: SimuladorInput,
    registro: RegistroConsultas,
    tabelas: TabelasReferencia,
    fontes_extras: Optional[Iterable[str]] = None,
) -> Metodologia:
    """
    Metodologia do resultado: confianca, fontes efetivamente consultadas
    (na ordem de consulta, sem repeticao), limitacoes e data de atualizacao
    estatica do ruleset.
    """
    confianca = determinar_confianca(registro)
    fontes = registro.fontes()
    if fontes_extras is not None:
        fontes.extend(f for f in fontes_extras if f)
    return Metodologia(
        confianca=confianca,
        resumo=_RESUMO_POR_CONFIANCA[confianca],
        fontes=tuple(dict.fromkeys(fontes)),
        limitacoes=tuple(montar_limitacoes(inp, registro)),
        ultima_atualizacao=tabelas.ultima_atualizacao,
        ruleset_id=tabelas.ruleset_id,
    )
