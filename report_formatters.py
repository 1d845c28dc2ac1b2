from __future__ import annotations

from typing import Any, Dict, List

from dominio import PRESSAO_DISPLAY, RISCO_DISPLAY, SETOR_DISPLAY, UF_NOMES
from dto import SimuladorInput
from formatters import formatar_percentual, formatar_pp, formatar_reais, formatar_reais_sinal
from recommendation_engine import gerar_erros_comuns
from regime_utils import regime_display

_DIRECAO_DISPLAY = {
    "favoravel": "Favorável",
    "neutro": "Neutro",
    "desfavoravel": "Desfavorável",
}


def _pct(valor: Any, casas: int = 1) -> str:
    if isinstance(valor, (int, float)):
        return formatar_percentual(float(valor), casas=casas, ja_percentual=True)
    return "N/D"


def render_cabecalho_section(result: Dict[str, Any]) -> str:
    entrada = result.get("entrada") or {}
    impacto = result.get("impacto_anual") or {}
    nivel = str(result.get("nivel_risco", "N/D"))
    setor = str(entrada.get("setor", ""))
    uf = str(entrada.get("uf", ""))

    lines: List[str] = ["=== RESULTADO DA SIMULAÇÃO ==="]
    lines.append(f"Setor: {SETOR_DISPLAY.get(setor, setor or 'N/D')}")
    lines.append(f"UF: {UF_NOMES.get(uf, uf or 'N/D')}")
    lines.append(f"Regime: {regime_display(str(entrada.get('regime', '')))}")
    lines.append(f"Faixa de faturamento: {entrada.get('faturamento', 'N/D')}")
    lines.append(f"Nível de risco: {RISCO_DISPLAY.get(nivel, nivel)}")
    percentual = impacto.get("percentual")
    if isinstance(percentual, (int, float)):
        sinal = "+" if percentual > 0 else ""
        lines.append(f"Variação da carga: {sinal}{_pct(percentual)}")
    lines.append(f"Impacto anual estimado: {formatar_reais_sinal(impacto.get('valor_anual', 0))}")
    lines.append(
        f"Faixa de impacto: {formatar_reais_sinal(impacto.get('valor_min', 0))} (melhor cenário) a "
        f"{formatar_reais_sinal(impacto.get('valor_max', 0))} (pior cenário)"
    )
    return "\n".join(lines)


def render_alertas_section(alertas: List[str]) -> str:
    lines: List[str] = ["=== ALERTAS ==="]
    if not isinstance(alertas, list) or not alertas:
        lines.append("Nenhum alerta para este perfil.")
        return "\n".join(lines)
    for alerta in alertas:
        lines.append(f"- {alerta}")
    return "\n".join(lines)


def render_efetividade_section(efetividade: Dict[str, Any]) -> str:
    lines: List[str] = ["=== EFETIVIDADE TRIBUTÁRIA ==="]
    if not isinstance(efetividade, dict) or not efetividade:
        lines.append("Sem dados de efetividade.")
        return "\n".join(lines)

    fator = efetividade.get("fator_efetividade")
    pressao = str(efetividade.get("pressao_formalizacao", "N/D"))
    if isinstance(fator, (int, float)):
        lines.append(f"Fator de efetividade: {formatar_percentual(float(fator), casas=0)}")
    lines.append(f"Carga legal: {_pct(efetividade.get('carga_legal_pct'), 2)}")
    lines.append(f"Carga efetiva: {_pct(efetividade.get('carga_efetiva_pct'), 2)}")
    lines.append(f"Impacto da alíquota: {formatar_reais_sinal(efetividade.get('impacto_aliquota', 0))}")
    lines.append(f"Impacto da formalização: {formatar_reais_sinal(efetividade.get('impacto_formalizacao', 0))}")
    lines.append(f"Impacto total: {formatar_reais_sinal(efetividade.get('impacto_total', 0))}")
    lines.append(f"Pressão de formalização: {PRESSAO_DISPLAY.get(pressao, pressao)}")
    narrative = efetividade.get("narrative")
    if narrative:
        lines.append(str(narrative))
    return "\n".join(lines)


def render_comparativo_section(rows: List[Dict[str, Any]]) -> str:
    lines: List[str] = ["=== COMPARATIVO ENTRE REGIMES ==="]
    if not isinstance(rows, list) or not rows:
        lines.append("Sem dados para comparativo.")
        return "\n".join(lines)

    lines.append("Regime | Carga atual | Carga nova | Variação | Risco")
    lines.append("----------------------------------------------------")
    for row in rows:
        nome = str(row.get("regime_nome", row.get("regime", "N/D")))
        atual = f"{_pct(row.get('carga_atual_min'))} a {_pct(row.get('carga_atual_max'))}"
        nova = f"{_pct(row.get('carga_nova_min'))} a {_pct(row.get('carga_nova_max'))}"
        risco = str(row.get("risco", "N/D"))
        lines.append(f"{nome} | {atual} | {nova} | {_pct(row.get('percentual'))} | {RISCO_DISPLAY.get(risco, risco)}")
    return "\n".join(lines)


def render_icms_section(ajuste: Dict[str, Any] | None) -> str:
    lines: List[str] = ["=== AJUSTE ESTADUAL (ICMS) ==="]
    if not isinstance(ajuste, dict) or not ajuste:
        lines.append("Setor não tributado pelo ICMS: sem ajuste estadual.")
        return "\n".join(lines)

    direcao = str(ajuste.get("direcao", "N/D"))
    lines.append(f"UF: {ajuste.get('uf_nome', ajuste.get('uf', 'N/D'))}")
    lines.append(f"Alíquota modal: {_pct(ajuste.get('icms_rate'))}")
    lines.append(f"Referência nacional: {_pct(ajuste.get('icms_referencia'), 2)}")
    lines.append(f"Diferença: {formatar_pp(ajuste.get('ajuste_pp', 0))}")
    lines.append(f"Efeito sobre a receita: {formatar_pp(ajuste.get('impacto_carga_pp', 0))}")
    lines.append(f"Direção: {_DIRECAO_DISPLAY.get(direcao, direcao)}")
    if ajuste.get("incentivo_fiscal"):
        lines.append(f"Incentivo fiscal: {ajuste['incentivo_fiscal']}")
    if ajuste.get("narrative"):
        lines.append(str(ajuste["narrative"]))
    if ajuste.get("fonte"):
        lines.append(f"Fonte: {ajuste['fonte']}")
    return "\n".join(lines)


def render_timeline_section(timeline: Dict[str, Any], projecao: List[Dict[str, Any]]) -> str:
    lines: List[str] = ["=== TRANSIÇÃO 2026-2033 ==="]
    entries = timeline.get("entries") if isinstance(timeline, dict) else None
    if not isinstance(entries, list) or not entries:
        lines.append("Calendário indisponível.")
        return "\n".join(lines)

    por_ano = {p.get("ano"): p for p in projecao or [] if isinstance(p, dict)}
    lines.append("Ano | IBS | CBS | Carga estimada | Diferença vs atual | Marco")
    lines.append("--------------------------------------------------------------")
    for entry in entries:
        ano = entry.get("ano")
        linha_proj = por_ano.get(ano, {})
        carga = _pct(linha_proj.get("carga_estimada_pct"), 2) if linha_proj else "N/D"
        diferenca = formatar_reais_sinal(linha_proj.get("diferenca_vs_atual", 0)) if linha_proj else "N/D"
        lines.append(
            f"{ano} | {_pct(entry.get('aliquota_ibs'))} | {_pct(entry.get('aliquota_cbs'))} | "
            f"{carga} | {diferenca} | {entry.get('descricao', '')}"
        )
    if timeline.get("narrative"):
        lines.append("")
        lines.append(str(timeline["narrative"]))
    return "\n".join(lines)


def render_metodologia_section(metodologia: Dict[str, Any]) -> str:
    lines: List[str] = ["=== METODOLOGIA E FONTES ==="]
    if not isinstance(metodologia, dict) or not metodologia:
        lines.append("Metodologia indisponível.")
        return "\n".join(lines)

    lines.append(f"Confiança: {metodologia.get('confianca', 'N/D')}")
    if metodologia.get("resumo"):
        lines.append(str(metodologia["resumo"]))
    lines.append(f"Ruleset: {metodologia.get('ruleset_id', 'N/D')}")
    lines.append(f"Última atualização das tabelas: {metodologia.get('ultima_atualizacao', 'N/D')}")
    for key, title in (("fontes", "Fontes"), ("limitacoes", "Limitações")):
        values = metodologia.get(key)
        if isinstance(values, list) and values:
            lines.append(f"{title}:")
            for item in values:
                lines.append(f"- {item}")
    return "\n".join(lines)


def render_acoes_section(acoes: List[str]) -> str:
    lines: List[str] = ["=== AÇÕES RECOMENDADAS ==="]
    if not isinstance(acoes, list) or not acoes:
        lines.append("Sem ações recomendadas.")
        return "\n".join(lines)
    for idx, acao in enumerate(acoes, start=1):
        lines.append(f"{idx}. {acao}")
    return "\n".join(lines)


def render_analise_regime_section(analise: Dict[str, Any]) -> str:
    lines: List[str] = ["=== ANÁLISE DE REGIME ==="]
    if not isinstance(analise, dict) or not analise:
        lines.append("Análise de regime indisponível.")
        return "\n".join(lines)

    lines.append(f"Regime atual: {analise.get('regime_atual', 'N/D')}")
    sugerido = analise.get("regime_sugerido")
    lines.append(f"Regime sugerido: {sugerido or 'Manter o regime atual'}")
    economia = analise.get("economia_estimada")
    if isinstance(economia, (int, float)):
        lines.append(f"Economia estimada: {formatar_reais(economia, casas=0)}/ano")
    if analise.get("justificativa"):
        lines.append(str(analise["justificativa"]))
    for fator in analise.get("fatores") or []:
        lines.append(f"- {fator}")
    return "\n".join(lines)


def render_checklist_section(checklist: List[str]) -> str:
    lines: List[str] = ["=== CHECKLIST DE ADEQUAÇÃO ==="]
    if not isinstance(checklist, list) or not checklist:
        lines.append("Checklist indisponível.")
        return "\n".join(lines)
    for item in checklist:
        lines.append(f"[ ] {item}")
    return "\n".join(lines)


def render_erros_comuns(result: Dict[str, Any], max_itens: int = 4) -> str:
    """Bloco compacto com os erros comuns do perfil; vazio quando nenhum se aplica."""
    entrada = result.get("entrada") or {}
    impacto = result.get("impacto_anual") or {}
    efetividade = result.get("efetividade_tributaria") or {}
    inp = SimuladorInput(
        regime=str(entrada.get("regime", "")),
        setor=str(entrada.get("setor", "")),
        faturamento=str(entrada.get("faturamento", "")),
        uf=str(entrada.get("uf", "")),
    )
    pressao = str(efetividade.get("pressao_formalizacao", ""))
    erros = gerar_erros_comuns(inp, float(impacto.get("percentual") or 0.0), pressao, max_itens=max_itens)
    if not erros:
        return ""

    lines = [
        "Erros comuns do perfil deste usuário "
        f"(setor {inp.setor}, regime {inp.regime}, pressão de formalização {pressao}):"
    ]
    for idx, erro in enumerate(erros, start=1):
        lines.append(f"{idx}. [{erro.severidade.upper()}] {erro.titulo}: {erro.descricao}")
    lines.append(
        "Quando relevante, alerte proativamente o usuário sobre esses erros, com linguagem "
        "não acusatória (\"empresas do setor costumam...\")."
    )
    return "\n".join(lines)


def montar_contexto_assistente(result: Dict[str, Any]) -> str:
    """
    Resumo curto para o assistente conversacional: risco, variacao, setor,
    regime, alerta principal e pressao de formalizacao, seguido dos erros
    comuns do perfil.
    """
    entrada = result.get("entrada") or {}
    impacto = result.get("impacto_anual") or {}
    efetividade = result.get("efetividade_tributaria") or {}
    alertas = result.get("alertas") or []
    setor = str(entrada.get("setor", ""))
    nivel = str(result.get("nivel_risco", "N/D"))
    pressao = str(efetividade.get("pressao_formalizacao", "N/D"))

    lines = [
        "Contexto da simulação do usuário:",
        f"- Setor: {SETOR_DISPLAY.get(setor, setor or 'N/D')}",
        f"- Regime: {regime_display(str(entrada.get('regime', '')))}",
        f"- Nível de risco: {RISCO_DISPLAY.get(nivel, nivel)}",
        f"- Variação estimada da carga: {_pct(impacto.get('percentual'))}",
        f"- Pressão de formalização: {PRESSAO_DISPLAY.get(pressao, pressao)}",
    ]
    if alertas:
        lines.append(f"- Alerta principal: {alertas[0]}")
    erros = render_erros_comuns(result)
    if erros:
        lines.append("")
        lines.append(erros)
    return "\n".join(lines)
