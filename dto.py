from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class SimuladorInput:
    regime: str       # simples | lucro_presumido | lucro_real | nao_sei
    setor: str        # ver dominio.SETORES
    faturamento: str  # ver dominio.FAIXAS_FATURAMENTO
    uf: str           # sigla, ex: SP

    def to_dict(self) -> Dict[str, str]:
        return {"regime": self.regime, "setor": self.setor, "faturamento": self.faturamento, "uf": self.uf}


@dataclass(frozen=True)
class ImpactoAnual:
    percentual: float
    valor_anual: int
    valor_min: int
    valor_max: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "percentual": self.percentual,
            "valor_anual": self.valor_anual,
            "valor_min": self.valor_min,
            "valor_max": self.valor_max,
        }


@dataclass(frozen=True)
class EfetividadeTributaria:
    fator_efetividade: float
    carga_efetiva_pct: float
    carga_legal_pct: float
    impacto_aliquota: int
    impacto_formalizacao: int
    impacto_total: int
    pressao_formalizacao: str  # baixa | moderada | alta | muito_alta
    narrative: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fator_efetividade": self.fator_efetividade,
            "carga_efetiva_pct": self.carga_efetiva_pct,
            "carga_legal_pct": self.carga_legal_pct,
            "impacto_aliquota": self.impacto_aliquota,
            "impacto_formalizacao": self.impacto_formalizacao,
            "impacto_total": self.impacto_total,
            "pressao_formalizacao": self.pressao_formalizacao,
            "narrative": self.narrative,
        }


@dataclass(frozen=True)
class LinhaComparativo:
    regime: str
    regime_nome: str
    carga_atual_min: float
    carga_atual_max: float
    carga_nova_min: float
    carga_nova_max: float
    risco: str
    percentual: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regime": self.regime,
            "regime_nome": self.regime_nome,
            "carga_atual_min": self.carga_atual_min,
            "carga_atual_max": self.carga_atual_max,
            "carga_nova_min": self.carga_nova_min,
            "carga_nova_max": self.carga_nova_max,
            "risco": self.risco,
            "percentual": self.percentual,
        }


@dataclass(frozen=True)
class AjusteIcms:
    uf: str
    uf_nome: str
    icms_rate: float
    icms_referencia: float
    margem_bruta: float
    ajuste_pp: float
    impacto_carga_pp: float
    direcao: str  # favoravel | neutro | desfavoravel
    narrative: str
    fonte: str
    incentivo_fiscal: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uf": self.uf,
            "uf_nome": self.uf_nome,
            "icms_rate": self.icms_rate,
            "icms_referencia": self.icms_referencia,
            "margem_bruta": self.margem_bruta,
            "ajuste_pp": self.ajuste_pp,
            "impacto_carga_pp": self.impacto_carga_pp,
            "direcao": self.direcao,
            "narrative": self.narrative,
            "fonte": self.fonte,
            "incentivo_fiscal": self.incentivo_fiscal,
        }


@dataclass(frozen=True)
class Metodologia:
    confianca: str  # alta | media | baixa
    resumo: str
    fontes: Tuple[str, ...]
    limitacoes: Tuple[str, ...]
    ultima_atualizacao: str
    ruleset_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confianca": self.confianca,
            "resumo": self.resumo,
            "fontes": list(self.fontes),
            "limitacoes": list(self.limitacoes),
            "ultima_atualizacao": self.ultima_atualizacao,
            "ruleset_id": self.ruleset_id,
        }


@dataclass(frozen=True)
class EntradaTimeline:
    ano: int
    descricao: str
    aliquota_ibs: float
    aliquota_cbs: float
    fonte: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ano": self.ano,
            "descricao": self.descricao,
            "aliquota_ibs": self.aliquota_ibs,
            "aliquota_cbs": self.aliquota_cbs,
            "fonte": self.fonte,
        }


@dataclass(frozen=True)
class Timeline:
    entries: Tuple[EntradaTimeline, ...]
    narrative: str

    def to_dict(self) -> Dict[str, Any]:
        return {"entries": [e.to_dict() for e in self.entries], "narrative": self.narrative}


@dataclass(frozen=True)
class ProjecaoAno:
    ano: int
    carga_estimada_pct: float
    imposto_estimado: int
    diferenca_vs_atual: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ano": self.ano,
            "carga_estimada_pct": self.carga_estimada_pct,
            "imposto_estimado": self.imposto_estimado,
            "diferenca_vs_atual": self.diferenca_vs_atual,
        }


@dataclass(frozen=True)
class AnaliseRegime:
    regime_atual: str
    regime_sugerido: Optional[str]
    economia_estimada: Optional[int]
    justificativa: str
    fatores: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regime_atual": self.regime_atual,
            "regime_sugerido": self.regime_sugerido,
            "economia_estimada": self.economia_estimada,
            "justificativa": self.justificativa,
            "fatores": list(self.fatores),
        }


@dataclass(frozen=True)
class ErroComum:
    id: str
    titulo: str
    descricao: str
    severidade: str  # alta | media | baixa
    pergunta_sugerida: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "titulo": self.titulo,
            "descricao": self.descricao,
            "severidade": self.severidade,
            "pergunta_sugerida": self.pergunta_sugerida,
        }


@dataclass(frozen=True)
class SimuladorResult:
    entrada: SimuladorInput
    nivel_risco: str
    impacto_anual: ImpactoAnual
    alertas: Tuple[str, ...]
    efetividade_tributaria: EfetividadeTributaria
    comparativo_regimes: Tuple[LinhaComparativo, ...]
    ajuste_icms: Optional[AjusteIcms]
    metodologia: Metodologia
    timeline: Timeline
    projecao_anual: Tuple[ProjecaoAno, ...]
    acoes_recomendadas: Tuple[str, ...]
    analise_regime: AnaliseRegime
    checklist: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entrada": self.entrada.to_dict(),
            "nivel_risco": self.nivel_risco,
            "impacto_anual": self.impacto_anual.to_dict(),
            "alertas": list(self.alertas),
            "efetividade_tributaria": self.efetividade_tributaria.to_dict(),
            "comparativo_regimes": [linha.to_dict() for linha in self.comparativo_regimes],
            "ajuste_icms": self.ajuste_icms.to_dict() if self.ajuste_icms is not None else None,
            "metodologia": self.metodologia.to_dict(),
            "timeline": self.timeline.to_dict(),
            "projecao_anual": [p.to_dict() for p in self.projecao_anual],
            "acoes_recomendadas": list(self.acoes_recomendadas),
            "analise_regime": self.analise_regime.to_dict(),
            "checklist": list(self.checklist),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SimuladorResult":
        """Reidrata um snapshot produzido por `to_dict` (ex.: cache do chamador)."""
        metodologia = dict(payload["metodologia"])
        metodologia["fontes"] = tuple(metodologia.get("fontes") or ())
        metodologia["limitacoes"] = tuple(metodologia.get("limitacoes") or ())
        timeline = payload["timeline"]
        ajuste = payload.get("ajuste_icms")
        analise = dict(payload["analise_regime"])
        analise["fatores"] = tuple(analise.get("fatores") or ())
        return cls(
            entrada=SimuladorInput(**payload["entrada"]),
            nivel_risco=payload["nivel_risco"],
            impacto_anual=ImpactoAnual(**payload["impacto_anual"]),
            alertas=tuple(payload.get("alertas") or ()),
            efetividade_tributaria=EfetividadeTributaria(**payload["efetividade_tributaria"]),
            comparativo_regimes=tuple(LinhaComparativo(**linha) for linha in payload["comparativo_regimes"]),
            ajuste_icms=AjusteIcms(**ajuste) if ajuste else None,
            metodologia=Metodologia(**metodologia),
            timeline=Timeline(
                entries=tuple(EntradaTimeline(**e) for e in timeline.get("entries") or ()),
                narrative=timeline.get("narrative", ""),
            ),
            projecao_anual=tuple(ProjecaoAno(**p) for p in payload.get("projecao_anual") or ()),
            acoes_recomendadas=tuple(payload.get("acoes_recomendadas") or ()),
            analise_regime=AnaliseRegime(**analise),
            checklist=tuple(payload.get("checklist") or ()),
        )
