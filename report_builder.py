from __future__ import annotations

from typing import Any, Dict

from dto import SimuladorResult
from report_formatters import (
    render_acoes_section,
    render_alertas_section,
    render_analise_regime_section,
    render_cabecalho_section,
    render_checklist_section,
    render_comparativo_section,
    render_efetividade_section,
    render_icms_section,
    render_metodologia_section,
    render_timeline_section,
)


def montar_relatorio_simulacao(result: SimuladorResult | Dict[str, Any]) -> str:
    """Relatorio completo em texto; aceita o resultado ou um snapshot de `to_dict`."""
    payload = result.to_dict() if isinstance(result, SimuladorResult) else dict(result)

    linhas = []
    linhas.append("==============================================")
    linhas.append("     RELATÓRIO - IMPACTO DA REFORMA TRIBUTÁRIA ")
    linhas.append("==============================================")
    secoes = [
        render_cabecalho_section(payload),
        render_alertas_section(list(payload.get("alertas") or [])),
        render_efetividade_section(payload.get("efetividade_tributaria") or {}),
        render_comparativo_section(list(payload.get("comparativo_regimes") or [])),
        render_icms_section(payload.get("ajuste_icms")),
        render_timeline_section(payload.get("timeline") or {}, list(payload.get("projecao_anual") or [])),
        render_analise_regime_section(payload.get("analise_regime") or {}),
        render_acoes_section(list(payload.get("acoes_recomendadas") or [])),
        render_checklist_section(list(payload.get("checklist") or [])),
        render_metodologia_section(payload.get("metodologia") or {}),
    ]
    linhas.append("\n\n".join(secoes))
    linhas.append("")
    linhas.append("Observação: Simulação estimativa; não substitui consultoria tributária profissional.")
    linhas.append("==============================================")
    return "\n".join(linhas)
