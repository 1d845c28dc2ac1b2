"""
Tabelas de referencia imutaveis da simulacao.

Cada consulta e total: quando a chave nao existe, devolve um valor padrao
documentado e marca o desfecho como ``default``. As consultas podem ser
registradas num ``RegistroConsultas``; o nivel de confianca do resultado e
derivado apenas desse registro.

O conjunto ativo de tabelas e trocado por atribuicao atomica em
``recarregar_tabelas``; calculos em andamento continuam com o snapshot
que obtiveram em ``get_tabelas``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import ruleset_loader
from app_config import resolve_ruleset_id
from dominio import FAIXA_360K_4_8M, SETOR_OUTRO
from regime_utils import REGIME_NAO_SEI

logger = logging.getLogger(__name__)

DESFECHO_EXATO = "exato"
DESFECHO_DEFAULT = "default"

DIMENSAO_SETOR = "setor"
DIMENSAO_UF = "uf"
DIMENSAO_REGIME = "regime"
DIMENSAO_FATURAMENTO = "faturamento"

MOTIVO_REGIME_NAO_INFORMADO = "Regime tributário não informado: resultados menos precisos."
MOTIVO_SETOR_GENERICO = (
    "Setor genérico: alíquotas podem variar significativamente conforme a atividade específica."
)


@dataclass(frozen=True)
class AliquotaIcms:
    uf: str
    valor: float
    fonte: str


@dataclass(frozen=True)
class PerfilSetor:
    setor: str
    tributado_icms: bool
    margem_bruta: Optional[float]
    carga_nova_min: float
    carga_nova_max: float
    reducao: Optional[str]
    fonte: str
    confianca_fonte: str


@dataclass(frozen=True)
class CargaAtual:
    minimo: float
    maximo: float
    fonte: str


@dataclass(frozen=True)
class AjusteRegime:
    fator: float
    fonte: str


@dataclass(frozen=True)
class FaixaCarga:
    regime: str
    setor: str
    atual_min: float
    atual_max: float
    projetada_min: float
    projetada_max: float
    fator_ajuste: float

    @property
    def atual_media(self) -> float:
        return (self.atual_min + self.atual_max) / 2.0

    @property
    def projetada_media(self) -> float:
        return (self.projetada_min + self.projetada_max) / 2.0


@dataclass(frozen=True)
class FatorEfetividade:
    medio: float
    minimo: float
    maximo: float
    fonte: str


@dataclass(frozen=True)
class FaturamentoReferencia:
    faixa: str
    valor: float
    porte: str
    fonte: str


@dataclass(frozen=True)
class MarcoTransicao:
    ano: int
    aliquota_ibs: float
    aliquota_cbs: float
    descricao: str
    fonte: str


@dataclass(frozen=True)
class IncentivoUf:
    uf: str
    programa: str
    fonte: str


@dataclass(frozen=True)
class Limiares:
    risco_medio_pct: float
    risco_alto_pct: float
    risco_critico_pct: float
    migracao_lucro_real_pct: float
    icms_neutro_epsilon_pp: float
    pressao_moderada_gap: float
    pressao_alta_gap: float
    pressao_muito_alta_gap: float
    faturamento_referencia: float
    convergencia_formalizacao: float


@dataclass(frozen=True)
class Consulta:
    """Desfecho rotulado de uma consulta: exato ou default."""

    dimensao: str
    tabela: str
    chave: str
    desfecho: str
    valor: Any
    fontes: Tuple[str, ...]
    motivo: str = ""

    @property
    def degradada(self) -> bool:
        return self.desfecho == DESFECHO_DEFAULT


class RegistroConsultas:
    """Acumulador explicito das consultas feitas durante uma simulacao."""

    def __init__(self) -> None:
        self._consultas: List[Consulta] = []

    def registrar(self, consulta: Consulta) -> Consulta:
        self._consultas.append(consulta)
        if consulta.degradada:
            logger.debug(
                "consulta degradada: tabela=%s chave=%s motivo=%s",
                consulta.tabela,
                consulta.chave,
                consulta.motivo,
            )
        return consulta

    @property
    def consultas(self) -> Tuple[Consulta, ...]:
        return tuple(self._consultas)

    def dimensoes_degradadas(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(c.dimensao for c in self._consultas if c.degradada))

    def fontes(self) -> List[str]:
        # Unicas, na ordem em que foram consultadas.
        return list(dict.fromkeys(f for c in self._consultas for f in c.fontes if f))

    def motivos(self) -> List[str]:
        return list(dict.fromkeys(c.motivo for c in self._consultas if c.degradada and c.motivo))


def _anotar(consulta: Consulta, registro: Optional[RegistroConsultas]) -> Consulta:
    if registro is not None:
        registro.registrar(consulta)
    return consulta


def _linha_regime_setor(
    tabela: Mapping[Tuple[str, str], Any],
    regime: str,
    setor: str,
    *,
    regime_conhecido: bool,
    rotulo: str,
) -> Tuple[Any, str, str]:
    """
    Resolve uma linha (regime, setor) e devolve (linha, dimensao, motivo).
    Regime conhecido sem linha para o setor cai na linha generica do proprio
    regime e degrada apenas o setor; `nao_sei` e regimes desconhecidos usam a
    faixa conservadora e degradam o regime.
    """
    if regime == REGIME_NAO_SEI:
        linha = tabela.get((REGIME_NAO_SEI, setor)) or tabela[(REGIME_NAO_SEI, SETOR_OUTRO)]
        return linha, DIMENSAO_REGIME, MOTIVO_REGIME_NAO_INFORMADO

    if regime_conhecido:
        linha = tabela.get((regime, setor))
        if linha is not None:
            return linha, DIMENSAO_REGIME, ""
        linha = tabela.get((regime, SETOR_OUTRO))
        if linha is not None:
            return (
                linha,
                DIMENSAO_SETOR,
                f"{rotulo} ausente para setor '{setor}' no regime '{regime}': usada a linha genérica do regime.",
            )

    linha = tabela.get((REGIME_NAO_SEI, setor)) or tabela[(REGIME_NAO_SEI, SETOR_OUTRO)]
    return (
        linha,
        DIMENSAO_REGIME,
        f"{rotulo} ausente para regime '{regime}' e setor '{setor}': usada a faixa conservadora entre regimes.",
    )


def calcular_referencia_nacional(aliquotas: Mapping[str, Tuple[float, float]]) -> float:
    """
    Media das aliquotas modais ponderada pelo PIB.
    `aliquotas` mapeia UF -> (aliquota, peso_pib).
    """
    peso_total = sum(peso for _, peso in aliquotas.values())
    if peso_total <= 0:
        raise ValueError("Pesos de PIB invalidos: soma deve ser positiva.")
    soma = sum(aliquota * peso for aliquota, peso in aliquotas.values())
    return soma / peso_total


@dataclass(frozen=True)
class TabelasReferencia:
    ruleset_id: str
    descricao: str
    ultima_atualizacao: str
    ruleset_hash: str
    icms_uf: Mapping[str, AliquotaIcms]
    pesos_pib: Mapping[str, float]
    icms_referencia: float
    fonte_referencia_icms: str
    perfis_setor: Mapping[str, PerfilSetor]
    margem_bruta_padrao: float
    carga_atual: Mapping[Tuple[str, str], CargaAtual]
    ajustes_regime: Mapping[str, AjusteRegime]
    efetividade: Mapping[Tuple[str, str], FatorEfetividade]
    faturamento: Mapping[str, FaturamentoReferencia]
    faixa_padrao: str
    marcos_transicao: Tuple[MarcoTransicao, ...]
    aliquota_plena_ibs: float
    aliquota_plena_cbs: float
    incentivos: Mapping[str, IncentivoUf]
    limiares: Limiares

    def icms_modal_rate(self, uf: str, registro: Optional[RegistroConsultas] = None) -> Consulta:
        """Aliquota modal de ICMS da UF; na ausencia, a referencia nacional."""
        aliquota = self.icms_uf.get(uf)
        if aliquota is not None:
            return _anotar(
                Consulta(DIMENSAO_UF, ruleset_loader.ARQUIVO_ICMS_UF, uf, DESFECHO_EXATO, aliquota, (aliquota.fonte,)),
                registro,
            )
        padrao = AliquotaIcms(uf=uf, valor=self.icms_referencia, fonte=self.fonte_referencia_icms)
        return _anotar(
            Consulta(
                DIMENSAO_UF,
                ruleset_loader.ARQUIVO_ICMS_UF,
                uf,
                DESFECHO_DEFAULT,
                padrao,
                (padrao.fonte,),
                motivo=f"UF {uf} sem alíquota modal de ICMS cadastrada: aplicada a referência nacional.",
            ),
            registro,
        )

    def setor_tributado_icms(self, setor: str) -> bool:
        perfil = self.perfis_setor.get(setor)
        return bool(perfil and perfil.tributado_icms)

    def perfil_setor(self, setor: str, registro: Optional[RegistroConsultas] = None) -> Consulta:
        perfil = self.perfis_setor.get(setor)
        if perfil is not None and setor != SETOR_OUTRO:
            return _anotar(
                Consulta(DIMENSAO_SETOR, ruleset_loader.ARQUIVO_SETORES, setor, DESFECHO_EXATO, perfil, (perfil.fonte,)),
                registro,
            )
        generico = self.perfis_setor[SETOR_OUTRO]
        if setor == SETOR_OUTRO:
            motivo = MOTIVO_SETOR_GENERICO
        else:
            motivo = f"Setor '{setor}' sem linha própria: aplicada a linha genérica."
        return _anotar(
            Consulta(
                DIMENSAO_SETOR,
                ruleset_loader.ARQUIVO_SETORES,
                setor,
                DESFECHO_DEFAULT,
                generico,
                (generico.fonte,),
                motivo=motivo,
            ),
            registro,
        )

    def faixa_carga_regime(
        self, regime: str, setor: str, registro: Optional[RegistroConsultas] = None
    ) -> Consulta:
        """
        Faixa de carga atual e projetada (IBS+CBS x fator de ajuste do regime).
        `nao_sei` usa a faixa conservadora entre regimes e conta como default.
        """
        perfil = self.perfis_setor.get(setor) or self.perfis_setor[SETOR_OUTRO]
        atual, dimensao, motivo = _linha_regime_setor(
            self.carga_atual,
            regime,
            setor,
            regime_conhecido=regime in self.ajustes_regime,
            rotulo="Faixa de carga",
        )
        if dimensao == DIMENSAO_REGIME and motivo:
            ajuste = self.ajustes_regime[REGIME_NAO_SEI]
        else:
            ajuste = self.ajustes_regime[regime]

        faixa = FaixaCarga(
            regime=regime,
            setor=setor,
            atual_min=atual.minimo,
            atual_max=atual.maximo,
            projetada_min=round(perfil.carga_nova_min * ajuste.fator, 4),
            projetada_max=round(perfil.carga_nova_max * ajuste.fator, 4),
            fator_ajuste=ajuste.fator,
        )
        return _anotar(
            Consulta(
                dimensao,
                ruleset_loader.ARQUIVO_CARGA_ATUAL,
                f"{regime}/{setor}",
                DESFECHO_DEFAULT if motivo else DESFECHO_EXATO,
                faixa,
                (atual.fonte, perfil.fonte, ajuste.fonte),
                motivo=motivo,
            ),
            registro,
        )

    def fator_efetividade(
        self, regime: str, setor: str, registro: Optional[RegistroConsultas] = None
    ) -> Consulta:
        fator, dimensao, motivo = _linha_regime_setor(
            self.efetividade,
            regime,
            setor,
            regime_conhecido=regime in self.ajustes_regime,
            rotulo="Fator de efetividade",
        )
        return _anotar(
            Consulta(
                dimensao,
                ruleset_loader.ARQUIVO_EFETIVIDADE,
                f"{regime}/{setor}",
                DESFECHO_DEFAULT if motivo else DESFECHO_EXATO,
                fator,
                (fator.fonte,),
                motivo=motivo,
            ),
            registro,
        )

    def faturamento_referencia(self, faixa: str, registro: Optional[RegistroConsultas] = None) -> Consulta:
        ref = self.faturamento.get(faixa)
        if ref is not None:
            return _anotar(
                Consulta(DIMENSAO_FATURAMENTO, ruleset_loader.ARQUIVO_FATURAMENTO, faixa, DESFECHO_EXATO, ref, (ref.fonte,)),
                registro,
            )
        padrao = self.faturamento[self.faixa_padrao]
        return _anotar(
            Consulta(
                DIMENSAO_FATURAMENTO,
                ruleset_loader.ARQUIVO_FATURAMENTO,
                faixa,
                DESFECHO_DEFAULT,
                padrao,
                (padrao.fonte,),
                motivo=f"Faixa de faturamento '{faixa}' sem valor de referência: usada a faixa {padrao.porte}.",
            ),
            registro,
        )

    def incentivo_uf(self, uf: str) -> Optional[IncentivoUf]:
        return self.incentivos.get(uf)

    def margem_bruta(self, setor: str) -> float:
        perfil = self.perfis_setor.get(setor)
        if perfil is not None and perfil.margem_bruta is not None:
            return perfil.margem_bruta
        return self.margem_bruta_padrao


# ---------------------------------------------------------------------------
# Montagem a partir dos payloads JSON do ruleset
# ---------------------------------------------------------------------------


def _erro(ruleset_id: str, arquivo: str, chave: str, detalhe: str) -> ValueError:
    return ValueError(f"ruleset_id={ruleset_id} | arquivo={arquivo} | chave={chave} | detalhe={detalhe}")


def _required_dict(payload: Dict[str, Any], key: str, *, ruleset_id: str, arquivo: str, contexto: str = "") -> Dict[str, Any]:
    chave = f"{contexto}.{key}" if contexto else key
    if key not in payload:
        raise _erro(ruleset_id, arquivo, chave, "chave ausente")
    value = payload.get(key)
    if not isinstance(value, dict):
        raise _erro(ruleset_id, arquivo, chave, "objeto invalido")
    return value


def _required_list(payload: Dict[str, Any], key: str, *, ruleset_id: str, arquivo: str, contexto: str = "") -> List[Any]:
    chave = f"{contexto}.{key}" if contexto else key
    if key not in payload:
        raise _erro(ruleset_id, arquivo, chave, "chave ausente")
    value = payload.get(key)
    if not isinstance(value, list):
        raise _erro(ruleset_id, arquivo, chave, "lista invalida")
    return value


def _required_float(payload: Dict[str, Any], key: str, *, ruleset_id: str, arquivo: str, contexto: str = "") -> float:
    chave = f"{contexto}.{key}" if contexto else key
    if key not in payload:
        raise _erro(ruleset_id, arquivo, chave, "chave ausente")
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _erro(ruleset_id, arquivo, chave, "valor nao numerico")
    return float(value)


def _required_str(payload: Dict[str, Any], key: str, *, ruleset_id: str, arquivo: str, contexto: str = "") -> str:
    chave = f"{contexto}.{key}" if contexto else key
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise _erro(ruleset_id, arquivo, chave, "texto ausente")
    return value.strip()


def _hash_payloads(payloads: Dict[str, Dict[str, Any]]) -> str:
    canonical = json.dumps(payloads, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _montar_icms(ruleset_id: str, payload: Dict[str, Any]) -> Tuple[Dict[str, AliquotaIcms], Dict[str, float], float, str]:
    arquivo = ruleset_loader.ARQUIVO_ICMS_UF
    ufs = _required_dict(payload, "ufs", ruleset_id=ruleset_id, arquivo=arquivo)
    if not ufs:
        raise _erro(ruleset_id, arquivo, "ufs", "nenhuma UF cadastrada")
    aliquotas: Dict[str, AliquotaIcms] = {}
    pesos: Dict[str, float] = {}
    for uf, row in ufs.items():
        if not isinstance(row, dict):
            raise _erro(ruleset_id, arquivo, f"ufs.{uf}", "objeto invalido")
        ctx = f"ufs.{uf}"
        valor = _required_float(row, "aliquota", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx)
        peso = _required_float(row, "peso_pib", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx)
        fonte = _required_str(row, "fonte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx)
        aliquotas[uf] = AliquotaIcms(uf=uf, valor=valor, fonte=fonte)
        pesos[uf] = peso
    referencia = calcular_referencia_nacional({uf: (aliquotas[uf].valor, pesos[uf]) for uf in aliquotas})
    fonte_ref = _required_str(payload, "fonte_referencia", ruleset_id=ruleset_id, arquivo=arquivo)
    return aliquotas, pesos, round(referencia, 4), fonte_ref


def _montar_setores(ruleset_id: str, payload: Dict[str, Any]) -> Tuple[Dict[str, PerfilSetor], float]:
    arquivo = ruleset_loader.ARQUIVO_SETORES
    setores = _required_dict(payload, "setores", ruleset_id=ruleset_id, arquivo=arquivo)
    margem_padrao = _required_float(payload, "margem_bruta_padrao", ruleset_id=ruleset_id, arquivo=arquivo)
    perfis: Dict[str, PerfilSetor] = {}
    for setor, row in setores.items():
        ctx = f"setores.{setor}"
        if not isinstance(row, dict):
            raise _erro(ruleset_id, arquivo, ctx, "objeto invalido")
        carga = _required_dict(row, "carga_nova", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx)
        margem = row.get("margem_bruta")
        perfis[setor] = PerfilSetor(
            setor=setor,
            tributado_icms=bool(row.get("tributado_icms", False)),
            margem_bruta=float(margem) if isinstance(margem, (int, float)) else None,
            carga_nova_min=_required_float(carga, "min", ruleset_id=ruleset_id, arquivo=arquivo, contexto=f"{ctx}.carga_nova"),
            carga_nova_max=_required_float(carga, "max", ruleset_id=ruleset_id, arquivo=arquivo, contexto=f"{ctx}.carga_nova"),
            reducao=carga.get("reducao") if isinstance(carga.get("reducao"), str) else None,
            fonte=_required_str(row, "fonte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            confianca_fonte=str(row.get("confianca_fonte", "estimativa_oficial")),
        )
    if SETOR_OUTRO not in perfis:
        raise _erro(ruleset_id, arquivo, f"setores.{SETOR_OUTRO}", "linha padrao ausente")
    return perfis, margem_padrao


def _montar_por_regime_setor(
    ruleset_id: str, arquivo: str, payload: Dict[str, Any], construir: Any
) -> Dict[Tuple[str, str], Any]:
    regimes = _required_dict(payload, "regimes", ruleset_id=ruleset_id, arquivo=arquivo)
    linhas: Dict[Tuple[str, str], Any] = {}
    for regime, por_setor in regimes.items():
        if not isinstance(por_setor, dict):
            raise _erro(ruleset_id, arquivo, f"regimes.{regime}", "objeto invalido")
        for setor, row in por_setor.items():
            ctx = f"regimes.{regime}.{setor}"
            if not isinstance(row, dict):
                raise _erro(ruleset_id, arquivo, ctx, "objeto invalido")
            linhas[(regime, setor)] = construir(row, ctx)
    if (REGIME_NAO_SEI, SETOR_OUTRO) not in linhas:
        raise _erro(ruleset_id, arquivo, f"regimes.{REGIME_NAO_SEI}.{SETOR_OUTRO}", "linha padrao ausente")
    return linhas


def _montar_carga_atual(ruleset_id: str, payload: Dict[str, Any]) -> Dict[Tuple[str, str], CargaAtual]:
    arquivo = ruleset_loader.ARQUIVO_CARGA_ATUAL

    def construir(row: Dict[str, Any], ctx: str) -> CargaAtual:
        return CargaAtual(
            minimo=_required_float(row, "min", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            maximo=_required_float(row, "max", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            fonte=_required_str(row, "fonte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
        )

    return _montar_por_regime_setor(ruleset_id, arquivo, payload, construir)


def _montar_efetividade(ruleset_id: str, payload: Dict[str, Any]) -> Dict[Tuple[str, str], FatorEfetividade]:
    arquivo = ruleset_loader.ARQUIVO_EFETIVIDADE

    def construir(row: Dict[str, Any], ctx: str) -> FatorEfetividade:
        medio = _required_float(row, "medio", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx)
        # Fator fora de (0, 1] tornaria a pressao de formalizacao negativa.
        if not 0.0 < medio <= 1.0:
            raise _erro(ruleset_id, arquivo, f"{ctx}.medio", "fator fora do intervalo (0, 1]")
        return FatorEfetividade(
            medio=medio,
            minimo=_required_float(row, "min", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            maximo=_required_float(row, "max", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            fonte=_required_str(row, "fonte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
        )

    return _montar_por_regime_setor(ruleset_id, arquivo, payload, construir)


def _montar_ajustes(ruleset_id: str, payload: Dict[str, Any]) -> Dict[str, AjusteRegime]:
    arquivo = ruleset_loader.ARQUIVO_AJUSTE_REGIME
    regimes = _required_dict(payload, "regimes", ruleset_id=ruleset_id, arquivo=arquivo)
    ajustes: Dict[str, AjusteRegime] = {}
    for regime, row in regimes.items():
        ctx = f"regimes.{regime}"
        if not isinstance(row, dict):
            raise _erro(ruleset_id, arquivo, ctx, "objeto invalido")
        ajustes[regime] = AjusteRegime(
            fator=_required_float(row, "fator", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            fonte=_required_str(row, "fonte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
        )
    if REGIME_NAO_SEI not in ajustes:
        raise _erro(ruleset_id, arquivo, f"regimes.{REGIME_NAO_SEI}", "linha padrao ausente")
    return ajustes


def _montar_faturamento(ruleset_id: str, payload: Dict[str, Any]) -> Tuple[Dict[str, FaturamentoReferencia], str]:
    arquivo = ruleset_loader.ARQUIVO_FATURAMENTO
    faixas = _required_dict(payload, "faixas", ruleset_id=ruleset_id, arquivo=arquivo)
    refs: Dict[str, FaturamentoReferencia] = {}
    for faixa, row in faixas.items():
        ctx = f"faixas.{faixa}"
        if not isinstance(row, dict):
            raise _erro(ruleset_id, arquivo, ctx, "objeto invalido")
        refs[faixa] = FaturamentoReferencia(
            faixa=faixa,
            valor=_required_float(row, "valor_medio", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            porte=_required_str(row, "porte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            fonte=_required_str(row, "fonte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
        )
    faixa_padrao = str(payload.get("faixa_padrao") or FAIXA_360K_4_8M)
    if faixa_padrao not in refs:
        raise _erro(ruleset_id, arquivo, f"faixas.{faixa_padrao}", "linha padrao ausente")
    return refs, faixa_padrao


def _montar_transicao(ruleset_id: str, payload: Dict[str, Any]) -> Tuple[Tuple[MarcoTransicao, ...], float, float]:
    arquivo = ruleset_loader.ARQUIVO_TRANSICAO
    plena = _required_dict(payload, "aliquota_plena", ruleset_id=ruleset_id, arquivo=arquivo)
    marcos: List[MarcoTransicao] = []
    for idx, row in enumerate(_required_list(payload, "marcos", ruleset_id=ruleset_id, arquivo=arquivo)):
        ctx = f"marcos[{idx}]"
        if not isinstance(row, dict):
            raise _erro(ruleset_id, arquivo, ctx, "objeto invalido")
        marcos.append(
            MarcoTransicao(
                ano=int(_required_float(row, "ano", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx)),
                aliquota_ibs=_required_float(row, "ibs", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
                aliquota_cbs=_required_float(row, "cbs", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
                descricao=_required_str(row, "descricao", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
                fonte=_required_str(row, "fonte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            )
        )
    marcos.sort(key=lambda m: m.ano)
    return (
        tuple(marcos),
        _required_float(plena, "ibs", ruleset_id=ruleset_id, arquivo=arquivo, contexto="aliquota_plena"),
        _required_float(plena, "cbs", ruleset_id=ruleset_id, arquivo=arquivo, contexto="aliquota_plena"),
    )


def _montar_incentivos(ruleset_id: str, payload: Dict[str, Any]) -> Dict[str, IncentivoUf]:
    arquivo = ruleset_loader.ARQUIVO_INCENTIVOS_UF
    ufs = _required_dict(payload, "ufs", ruleset_id=ruleset_id, arquivo=arquivo)
    incentivos: Dict[str, IncentivoUf] = {}
    for uf, row in ufs.items():
        ctx = f"ufs.{uf}"
        if not isinstance(row, dict):
            raise _erro(ruleset_id, arquivo, ctx, "objeto invalido")
        incentivos[uf] = IncentivoUf(
            uf=uf,
            programa=_required_str(row, "programa", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
            fonte=_required_str(row, "fonte", ruleset_id=ruleset_id, arquivo=arquivo, contexto=ctx),
        )
    return incentivos


def _montar_limiares(ruleset_id: str, payload: Dict[str, Any]) -> Limiares:
    arquivo = ruleset_loader.ARQUIVO_THRESHOLDS
    kw = {"ruleset_id": ruleset_id, "arquivo": arquivo}
    risco = _required_dict(payload, "risco", **kw)
    icms = _required_dict(payload, "icms", **kw)
    pressao = _required_dict(payload, "pressao_formalizacao", **kw)
    efetividade = _required_dict(payload, "efetividade", **kw)
    convergencia = _required_float(efetividade, "convergencia_formalizacao", contexto="efetividade", **kw)
    if not 0.0 <= convergencia <= 1.0:
        raise _erro(ruleset_id, arquivo, "efetividade.convergencia_formalizacao", "valor fora do intervalo [0, 1]")
    return Limiares(
        risco_medio_pct=_required_float(risco, "medio_pct", contexto="risco", **kw),
        risco_alto_pct=_required_float(risco, "alto_pct", contexto="risco", **kw),
        risco_critico_pct=_required_float(risco, "critico_pct", contexto="risco", **kw),
        migracao_lucro_real_pct=_required_float(payload, "migracao_lucro_real_pct", **kw),
        icms_neutro_epsilon_pp=_required_float(icms, "neutro_epsilon_pp", contexto="icms", **kw),
        pressao_moderada_gap=_required_float(pressao, "moderada_gap", contexto="pressao_formalizacao", **kw),
        pressao_alta_gap=_required_float(pressao, "alta_gap", contexto="pressao_formalizacao", **kw),
        pressao_muito_alta_gap=_required_float(pressao, "muito_alta_gap", contexto="pressao_formalizacao", **kw),
        faturamento_referencia=_required_float(efetividade, "faturamento_referencia", contexto="efetividade", **kw),
        convergencia_formalizacao=convergencia,
    )


def montar_tabelas(ruleset_id: str, payloads: Dict[str, Dict[str, Any]]) -> TabelasReferencia:
    """Constroi o conjunto imutavel de tabelas a partir dos payloads do ruleset."""
    for filename in ruleset_loader.RULESET_FILES:
        if not isinstance(payloads.get(filename), dict):
            raise _erro(ruleset_id, filename, "$", "arquivo ausente ou invalido")

    metadata = payloads[ruleset_loader.ARQUIVO_METADATA]
    aliquotas, pesos, referencia, fonte_ref = _montar_icms(ruleset_id, payloads[ruleset_loader.ARQUIVO_ICMS_UF])
    perfis, margem_padrao = _montar_setores(ruleset_id, payloads[ruleset_loader.ARQUIVO_SETORES])
    faturamento, faixa_padrao = _montar_faturamento(ruleset_id, payloads[ruleset_loader.ARQUIVO_FATURAMENTO])
    marcos, plena_ibs, plena_cbs = _montar_transicao(ruleset_id, payloads[ruleset_loader.ARQUIVO_TRANSICAO])

    tabelas = TabelasReferencia(
        ruleset_id=str(metadata.get("ruleset_id") or ruleset_id),
        descricao=str(metadata.get("descricao") or ""),
        ultima_atualizacao=_required_str(
            metadata, "ultima_atualizacao", ruleset_id=ruleset_id, arquivo=ruleset_loader.ARQUIVO_METADATA
        ),
        ruleset_hash=_hash_payloads(payloads),
        icms_uf=MappingProxyType(aliquotas),
        pesos_pib=MappingProxyType(pesos),
        icms_referencia=referencia,
        fonte_referencia_icms=fonte_ref,
        perfis_setor=MappingProxyType(perfis),
        margem_bruta_padrao=margem_padrao,
        carga_atual=MappingProxyType(_montar_carga_atual(ruleset_id, payloads[ruleset_loader.ARQUIVO_CARGA_ATUAL])),
        ajustes_regime=MappingProxyType(_montar_ajustes(ruleset_id, payloads[ruleset_loader.ARQUIVO_AJUSTE_REGIME])),
        efetividade=MappingProxyType(_montar_efetividade(ruleset_id, payloads[ruleset_loader.ARQUIVO_EFETIVIDADE])),
        faturamento=MappingProxyType(faturamento),
        faixa_padrao=faixa_padrao,
        marcos_transicao=marcos,
        aliquota_plena_ibs=plena_ibs,
        aliquota_plena_cbs=plena_cbs,
        incentivos=MappingProxyType(_montar_incentivos(ruleset_id, payloads[ruleset_loader.ARQUIVO_INCENTIVOS_UF])),
        limiares=_montar_limiares(ruleset_id, payloads[ruleset_loader.ARQUIVO_THRESHOLDS]),
    )
    logger.info(
        "tabelas montadas: ruleset=%s ufs=%d referencia_icms=%.4f",
        tabelas.ruleset_id,
        len(aliquotas),
        referencia,
    )
    return tabelas


def carregar_tabelas(ruleset_id: Optional[str] = None) -> TabelasReferencia:
    rid = resolve_ruleset_id(ruleset_id)
    return montar_tabelas(rid, ruleset_loader.load_all(rid))


_LOCK = threading.Lock()
_ATIVAS: Optional[TabelasReferencia] = None


def get_tabelas() -> TabelasReferencia:
    """Snapshot do conjunto ativo (carregado na primeira chamada)."""
    global _ATIVAS
    atual = _ATIVAS
    if atual is not None:
        return atual
    with _LOCK:
        if _ATIVAS is None:
            _ATIVAS = carregar_tabelas()
        return _ATIVAS


def ativar_tabelas(tabelas: TabelasReferencia) -> TabelasReferencia:
    """Troca atomica do conjunto ativo; retorna o conjunto anterior (ou o novo, se nao havia)."""
    global _ATIVAS
    with _LOCK:
        anterior = _ATIVAS
        _ATIVAS = tabelas
    return anterior if anterior is not None else tabelas


def recarregar_tabelas(ruleset_id: Optional[str] = None) -> TabelasReferencia:
    """Relê o ruleset do disco e ativa o novo conjunto sem mutar o anterior."""
    ruleset_loader.clear_cache()
    novas = carregar_tabelas(ruleset_id)
    ativar_tabelas(novas)
    logger.info("tabelas recarregadas: ruleset=%s hash=%s", novas.ruleset_id, novas.ruleset_hash[:12])
    return novas
