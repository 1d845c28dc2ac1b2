from __future__ import annotations

import unicodedata
from typing import Any, Dict, Optional, Tuple

SETOR_COMERCIO = "comercio"
SETOR_INDUSTRIA = "industria"
SETOR_SERVICOS = "servicos"
SETOR_AGRONEGOCIO = "agronegocio"
SETOR_TECNOLOGIA = "tecnologia"
SETOR_SAUDE = "saude"
SETOR_EDUCACAO = "educacao"
SETOR_CONSTRUCAO = "construcao"
SETOR_FINANCEIRO = "financeiro"
SETOR_OUTRO = "outro"

SETORES: Tuple[str, ...] = (
    SETOR_COMERCIO,
    SETOR_INDUSTRIA,
    SETOR_SERVICOS,
    SETOR_AGRONEGOCIO,
    SETOR_TECNOLOGIA,
    SETOR_SAUDE,
    SETOR_EDUCACAO,
    SETOR_CONSTRUCAO,
    SETOR_FINANCEIRO,
    SETOR_OUTRO,
)

SETOR_DISPLAY: Dict[str, str] = {
    SETOR_COMERCIO: "Comércio",
    SETOR_INDUSTRIA: "Indústria",
    SETOR_SERVICOS: "Serviços",
    SETOR_AGRONEGOCIO: "Agronegócio",
    SETOR_TECNOLOGIA: "Tecnologia / SaaS",
    SETOR_SAUDE: "Saúde",
    SETOR_EDUCACAO: "Educação",
    SETOR_CONSTRUCAO: "Construção Civil",
    SETOR_FINANCEIRO: "Serviços Financeiros",
    SETOR_OUTRO: "Outro",
}

# Sinonimos aceitos na fronteira de entrada (sem acento, minusculo).
SETOR_ALIASES: Dict[str, str] = {
    "varejo": SETOR_COMERCIO,
    "atacado": SETOR_COMERCIO,
    "distribuicao": SETOR_COMERCIO,
    "industrial": SETOR_INDUSTRIA,
    "manufatura": SETOR_INDUSTRIA,
    "servico": SETOR_SERVICOS,
    "agro": SETOR_AGRONEGOCIO,
    "agropecuaria": SETOR_AGRONEGOCIO,
    "ti": SETOR_TECNOLOGIA,
    "software": SETOR_TECNOLOGIA,
    "saas": SETOR_TECNOLOGIA,
    "construcao civil": SETOR_CONSTRUCAO,
    "servicos financeiros": SETOR_FINANCEIRO,
}

FAIXA_ATE_81K = "ate_81k"
FAIXA_81K_360K = "81k_360k"
FAIXA_360K_4_8M = "360k_4.8m"
FAIXA_4_8M_78M = "4.8m_78m"
FAIXA_ACIMA_78M = "acima_78m"

FAIXAS_FATURAMENTO: Tuple[str, ...] = (
    FAIXA_ATE_81K,
    FAIXA_81K_360K,
    FAIXA_360K_4_8M,
    FAIXA_4_8M_78M,
    FAIXA_ACIMA_78M,
)

# Limites superiores inclusivos (LC 123/2006 para MEI/ME/EPP).
_LIMITES_FAIXA: Tuple[Tuple[float, str], ...] = (
    (81_000.0, FAIXA_ATE_81K),
    (360_000.0, FAIXA_81K_360K),
    (4_800_000.0, FAIXA_360K_4_8M),
    (78_000_000.0, FAIXA_4_8M_78M),
)

FAIXA_ALIASES: Dict[str, str] = {
    "mei": FAIXA_ATE_81K,
    "me": FAIXA_81K_360K,
    "epp": FAIXA_360K_4_8M,
    "medio": FAIXA_4_8M_78M,
    "grande": FAIXA_ACIMA_78M,
}

UF_NOMES: Dict[str, str] = {
    "AC": "Acre",
    "AL": "Alagoas",
    "AM": "Amazonas",
    "AP": "Amapá",
    "BA": "Bahia",
    "CE": "Ceará",
    "DF": "Distrito Federal",
    "ES": "Espírito Santo",
    "GO": "Goiás",
    "MA": "Maranhão",
    "MG": "Minas Gerais",
    "MS": "Mato Grosso do Sul",
    "MT": "Mato Grosso",
    "PA": "Pará",
    "PB": "Paraíba",
    "PE": "Pernambuco",
    "PI": "Piauí",
    "PR": "Paraná",
    "RJ": "Rio de Janeiro",
    "RN": "Rio Grande do Norte",
    "RO": "Rondônia",
    "RR": "Roraima",
    "RS": "Rio Grande do Sul",
    "SC": "Santa Catarina",
    "SE": "Sergipe",
    "SP": "São Paulo",
    "TO": "Tocantins",
}

UFS: Tuple[str, ...] = tuple(sorted(UF_NOMES))

_PREPOSICAO_UF: Dict[str, str] = {
    "AC": "no", "AL": "em", "AM": "no", "AP": "no", "BA": "na", "CE": "no", "DF": "no",
    "ES": "no", "GO": "em", "MA": "no", "MG": "em", "MS": "em", "MT": "em", "PA": "no",
    "PB": "na", "PE": "em", "PI": "no", "PR": "no", "RJ": "no", "RN": "no", "RO": "em",
    "RR": "em", "RS": "no", "SC": "em", "SE": "em", "SP": "em", "TO": "no",
}

RISCO_BAIXO = "baixo"
RISCO_MEDIO = "medio"
RISCO_ALTO = "alto"
RISCO_CRITICO = "critico"

# Ordem total por severidade.
NIVEIS_RISCO: Tuple[str, ...] = (RISCO_BAIXO, RISCO_MEDIO, RISCO_ALTO, RISCO_CRITICO)

RISCO_DISPLAY: Dict[str, str] = {
    RISCO_BAIXO: "Baixo",
    RISCO_MEDIO: "Médio",
    RISCO_ALTO: "Alto",
    RISCO_CRITICO: "Crítico",
}

CONFIANCA_ALTA = "alta"
CONFIANCA_MEDIA = "media"
CONFIANCA_BAIXA = "baixa"

DIRECAO_FAVORAVEL = "favoravel"
DIRECAO_NEUTRO = "neutro"
DIRECAO_DESFAVORAVEL = "desfavoravel"

# Do mais favoravel para o menos favoravel.
DIRECOES: Tuple[str, ...] = (DIRECAO_FAVORAVEL, DIRECAO_NEUTRO, DIRECAO_DESFAVORAVEL)

PRESSAO_BAIXA = "baixa"
PRESSAO_MODERADA = "moderada"
PRESSAO_ALTA = "alta"
PRESSAO_MUITO_ALTA = "muito_alta"

PRESSAO_DISPLAY: Dict[str, str] = {
    PRESSAO_BAIXA: "baixa",
    PRESSAO_MODERADA: "moderada",
    PRESSAO_ALTA: "alta",
    PRESSAO_MUITO_ALTA: "muito alta",
}


def _normalizar_chave(value: Any) -> str:
    texto = str(value or "").strip().lower().replace("-", " ").replace("_", " ")
    texto = unicodedata.normalize("NFKD", texto)
    texto = "".join(ch for ch in texto if not unicodedata.combining(ch))
    return " ".join(texto.split())


def canonicalize_setor(value: Any) -> Optional[str]:
    """Resolve codigo, rotulo ou sinonimo de setor. Retorna None se desconhecido."""
    chave = _normalizar_chave(value)
    if not chave:
        return None
    for setor in SETORES:
        if chave == setor or chave == _normalizar_chave(SETOR_DISPLAY[setor]):
            return setor
    return SETOR_ALIASES.get(chave)


def canonicalize_uf(value: Any) -> Optional[str]:
    sigla = str(value or "").strip().upper()
    if sigla in UF_NOMES:
        return sigla
    chave = _normalizar_chave(value)
    for uf, nome in UF_NOMES.items():
        if chave == _normalizar_chave(nome):
            return uf
    return None


def canonicalize_faixa(value: Any) -> Optional[str]:
    raw = str(value or "").strip().lower()
    if raw in FAIXAS_FATURAMENTO:
        return raw
    return FAIXA_ALIASES.get(_normalizar_chave(value))


def faixa_por_receita(receita_anual: float) -> str:
    """Enquadra receita anual na faixa correspondente (limites superiores inclusivos)."""
    for limite, faixa in _LIMITES_FAIXA:
        if receita_anual <= limite:
            return faixa
    return FAIXA_ACIMA_78M


def uf_locativo(uf: str) -> str:
    """Ex.: 'SP' -> 'em São Paulo'."""
    nome = UF_NOMES.get(uf, uf)
    return f"{_PREPOSICAO_UF.get(uf, 'em')} {nome}"


def indice_risco(nivel: str) -> int:
    return NIVEIS_RISCO.index(nivel)
