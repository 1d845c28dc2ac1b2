from __future__ import annotations

import logging
from typing import Optional

from audit_metadata import montar_metodologia
from dominio import canonicalize_faixa, canonicalize_setor, canonicalize_uf
from dto import SimuladorInput, SimuladorResult
from effectiveness_model import calcular_efetividade
from recommendation_engine import gerar_acoes_recomendadas, gerar_analise_regime, gerar_checklist
from reference_data import RegistroConsultas, TabelasReferencia, get_tabelas
from regime_comparator import comparar_regimes
from regime_utils import canonicalize_regime
from risk_engine import calcular_impacto, classificar_risco, gerar_alertas
from state_comparator import calcular_ajuste_icms
from timeline import fontes_timeline, gerar_timeline, projetar_anos

logger = logging.getLogger(__name__)


class SimulationService:
    """
    Service Layer: orquestra consultas -> risco/impacto -> efetividade ->
    comparativos -> timeline -> alertas -> metodologia.
    Funcao pura de SimuladorInput para SimuladorResult; nao guarda estado
    entre chamadas e nao depende do relogio.
    """

    def __init__(self, tabelas: Optional[TabelasReferencia] = None) -> None:
        self._tabelas = tabelas

    @property
    def tabelas(self) -> TabelasReferencia:
        # Snapshot: uma recarga posterior nao afeta quem ja obteve as tabelas.
        return self._tabelas if self._tabelas is not None else get_tabelas()

    @staticmethod
    def _normalizar_entrada(inp: SimuladorInput) -> SimuladorInput:
        """Aplica sinonimos conhecidos; valores desconhecidos seguem para o caminho padrao das tabelas."""
        regime_info = canonicalize_regime(inp.regime)
        return SimuladorInput(
            regime=regime_info["regime_code"] if regime_info else inp.regime,
            setor=canonicalize_setor(inp.setor) or inp.setor,
            faturamento=canonicalize_faixa(inp.faturamento) or inp.faturamento,
            uf=canonicalize_uf(inp.uf) or inp.uf,
        )

    def run(self, inp: SimuladorInput) -> SimuladorResult:
        tabelas = self.tabelas
        inp = self._normalizar_entrada(inp)
        registro = RegistroConsultas()

        # A ordem das consultas define a ordem das fontes na metodologia.
        receita = tabelas.faturamento_referencia(inp.faturamento, registro).valor.valor
        faixa = tabelas.faixa_carga_regime(inp.regime, inp.setor, registro).valor
        perfil = tabelas.perfil_setor(inp.setor, registro).valor
        fator = tabelas.fator_efetividade(inp.regime, inp.setor, registro).valor

        impacto = calcular_impacto(faixa, receita)
        nivel_risco = classificar_risco(impacto.percentual, inp.setor, inp.regime, tabelas.limiares)
        efetividade = calcular_efetividade(faixa, fator, tabelas.limiares)

        comparativo = comparar_regimes(inp.setor, tabelas)
        ajuste_icms = calcular_ajuste_icms(inp.setor, inp.uf, tabelas, registro)
        incentivo = tabelas.incentivo_uf(inp.uf)

        timeline = gerar_timeline(nivel_risco, tabelas)
        projecao = projetar_anos(faixa, receita, tabelas)

        alertas = gerar_alertas(
            inp,
            nivel_risco=nivel_risco,
            percentual=impacto.percentual,
            perfil=perfil,
            pressao_formalizacao=efetividade.pressao_formalizacao,
            tributado_icms=ajuste_icms is not None,
            incentivo=incentivo,
            limiares=tabelas.limiares,
        )

        fontes_extras = []
        if incentivo is not None:
            fontes_extras.append(incentivo.fonte)
        fontes_extras.extend(fontes_timeline(tabelas))
        metodologia = montar_metodologia(inp, registro, tabelas, fontes_extras)

        logger.debug(
            "simulacao: %s/%s/%s/%s risco=%s percentual=%.1f confianca=%s",
            inp.setor,
            inp.uf,
            inp.regime,
            inp.faturamento,
            nivel_risco,
            impacto.percentual,
            metodologia.confianca,
        )

        return SimuladorResult(
            entrada=inp,
            nivel_risco=nivel_risco,
            impacto_anual=impacto,
            alertas=alertas,
            efetividade_tributaria=efetividade,
            comparativo_regimes=comparativo,
            ajuste_icms=ajuste_icms,
            metodologia=metodologia,
            timeline=timeline,
            projecao_anual=projecao,
            acoes_recomendadas=gerar_acoes_recomendadas(inp, nivel_risco, ajuste_icms is not None),
            analise_regime=gerar_analise_regime(inp, tabelas),
            checklist=gerar_checklist(inp),
        )


def simular(inp: SimuladorInput, tabelas: Optional[TabelasReferencia] = None) -> SimuladorResult:
    return SimulationService(tabelas).run(inp)
