from __future__ import annotations

from typing import List, Tuple

from dominio import (
    FAIXA_81K_360K,
    FAIXA_ATE_81K,
    PRESSAO_ALTA,
    PRESSAO_MUITO_ALTA,
    RISCO_CRITICO,
    SETOR_AGRONEGOCIO,
    SETOR_COMERCIO,
    SETOR_CONSTRUCAO,
    SETOR_DISPLAY,
    SETOR_EDUCACAO,
    SETOR_INDUSTRIA,
    SETOR_SAUDE,
    SETOR_SERVICOS,
    SETOR_TECNOLOGIA,
)
from dto import AnaliseRegime, ErroComum, SimuladorInput
from formatters import formatar_percentual, formatar_reais
from reference_data import TabelasReferencia
from regime_utils import (
    REGIME_DISPLAY_PRESUMIDO,
    REGIME_DISPLAY_REAL,
    REGIME_NAO_SEI,
    REGIME_PRESUMIDO,
    REGIME_REAL,
    REGIME_SIMPLES,
    regime_display,
)

ACOES_GERAIS = (
    "Atualizar sistema de emissão de notas fiscais para novos campos (IBS, CBS).",
    "Simular fluxo de caixa considerando split payment em 2027.",
    "Revisar contratos de longo prazo para cláusulas de reajuste tributário.",
    "Mapear produtos e serviços com alíquotas diferenciadas.",
)

CHECKLIST_BASE = (
    "Atualizar sistema de emissão de NF-e para incluir campos IBS e CBS",
    "Cadastrar empresa no portal do IBS (quando disponível)",
    "Revisar todos os contratos de longo prazo para cláusulas de reajuste tributário",
    "Mapear produtos/serviços e identificar alíquotas diferenciadas aplicáveis",
    "Simular fluxo de caixa com split payment (retenção automática na liquidação)",
    "Treinar equipe fiscal nas novas obrigações acessórias",
    "Revisar precificação de produtos/serviços com nova carga tributária",
    "Configurar sistema contábil para apuração dual (período de transição)",
    "Verificar créditos tributários acumulados e planejar compensação",
    "Atualizar cadastro fiscal em todos os municípios de atuação",
    "Revisar enquadramento no Simples Nacional vs regime normal",
    "Preparar documentação para regime de transição (créditos presumidos)",
    "Avaliar impacto em operações interestaduais (destino vs origem)",
    "Revisar benefícios fiscais estaduais/municipais que serão extintos",
    "Criar cronograma interno de adequação com marcos trimestrais",
)

# Economia minima, como fracao da receita, para sugerir Presumido -> Real.
LIMIAR_ECONOMIA_MIGRACAO = 0.01

SEVERIDADE_ALTA = "alta"
SEVERIDADE_MEDIA = "media"
SEVERIDADE_BAIXA = "baixa"
_ORDEM_SEVERIDADE = {SEVERIDADE_ALTA: 0, SEVERIDADE_MEDIA: 1, SEVERIDADE_BAIXA: 2}


def _dedupe(items: List[str]) -> List[str]:
    return list(dict.fromkeys(item for item in items if item.strip()))


def gerar_acoes_recomendadas(inp: SimuladorInput, nivel_risco: str, tem_ajuste_icms: bool) -> Tuple[str, ...]:
    acoes: List[str] = list(ACOES_GERAIS)

    if inp.regime == REGIME_PRESUMIDO:
        acoes.append("Avaliar comparativo Lucro Presumido vs Lucro Real no novo sistema.")
    if inp.setor in (SETOR_SERVICOS, SETOR_TECNOLOGIA):
        acoes.append("Revisar estrutura de custos: folha de pagamento não gerará crédito.")
        acoes.append("Considerar estratégias de precificação com a nova carga tributária.")
    if inp.regime == REGIME_SIMPLES:
        acoes.append("Avaliar impacto em vendas B2B: clientes podem preferir fornecedores fora do Simples.")
    if inp.regime == REGIME_NAO_SEI:
        acoes.append("Confirmar o regime tributário com seu contador e refazer a simulação.")
    if inp.setor == SETOR_AGRONEGOCIO:
        acoes.append("Planejar recuperação de créditos de ICMS acumulados antes da extinção.")
    if tem_ajuste_icms:
        acoes.append("Revisar benefícios fiscais estaduais de ICMS que serão extintos até 2033.")
    if nivel_risco == RISCO_CRITICO:
        acoes.append("Montar cronograma interno de adequação com marcos trimestrais a partir de 2026.")

    return tuple(_dedupe(acoes))


def gerar_checklist(inp: SimuladorInput) -> Tuple[str, ...]:
    """Checklist completo de adequacao: itens gerais mais os do setor e do regime."""
    checklist: List[str] = list(CHECKLIST_BASE)

    if inp.setor in (SETOR_SERVICOS, SETOR_TECNOLOGIA):
        checklist.append("Analisar impacto da não-cumulatividade limitada em serviços (sem crédito de folha)")
        checklist.append("Avaliar reestruturação societária para otimizar créditos")
    if inp.setor == SETOR_COMERCIO:
        checklist.append("Revisar cadeia de fornecedores quanto à emissão de documentos com IBS/CBS")
        checklist.append("Preparar sistema de PDV para nova tributação")
    if inp.setor == SETOR_INDUSTRIA:
        checklist.append("Mapear toda cadeia de insumos para aproveitamento de créditos")
        checklist.append("Avaliar impacto em exportações (manutenção da desoneração)")
    if inp.setor == SETOR_AGRONEGOCIO:
        checklist.append("Planejar recuperação de créditos de ICMS acumulados antes da extinção")
        checklist.append("Verificar enquadramento em regime diferenciado do agronegócio")
    if inp.regime == REGIME_PRESUMIDO:
        checklist.append("Realizar simulação comparativa Lucro Presumido vs Lucro Real no novo sistema")
        checklist.append("Avaliar timing ideal para eventual migração de regime")

    return tuple(_dedupe(checklist))


def gerar_analise_regime(
    inp: SimuladorInput,
    tabelas: TabelasReferencia,
    limiar_economia: float = LIMIAR_ECONOMIA_MIGRACAO,
) -> AnaliseRegime:
    """
    Recomendacao de regime para o perfil.

    So o Lucro Presumido recebe sugestao de migracao: quando o custo projetado
    no Lucro Real fica abaixo do Presumido por mais que `limiar_economia` da
    receita de referencia, sugere o Lucro Real e informa a economia anual.
    As consultas aqui nao entram no registro de confianca.
    """
    if inp.regime == REGIME_SIMPLES:
        return AnaliseRegime(
            regime_atual=regime_display(REGIME_SIMPLES),
            regime_sugerido=None,
            economia_estimada=None,
            justificativa=(
                "O Simples Nacional mantém regime próprio na reforma. A principal preocupação é a perda de "
                "competitividade em vendas B2B, já que clientes não poderão aproveitar créditos de IBS/CBS "
                "nas compras do Simples."
            ),
            fatores=(
                "Simples mantém regime diferenciado na reforma",
                "Clientes PJ não aproveitam créditos em compras do Simples",
                "Pode perder vendas B2B para concorrentes no regime normal",
                "Avalie se o faturamento justifica migração para regime normal",
            ),
        )

    if inp.regime == REGIME_PRESUMIDO:
        receita = tabelas.faturamento_referencia(inp.faturamento).valor.valor
        presumido = tabelas.faixa_carga_regime(REGIME_PRESUMIDO, inp.setor).valor
        real = tabelas.faixa_carga_regime(REGIME_REAL, inp.setor).valor

        custo_presumido = receita * presumido.projetada_media / 100.0
        custo_real = receita * real.projetada_media / 100.0
        economia = int(round(custo_presumido - custo_real))
        deve_migrar = economia > receita * limiar_economia

        if deve_migrar:
            justificativa = (
                "Com a reforma, o Lucro Real permite aproveitamento pleno de créditos de IBS/CBS. "
                f"Para seu perfil, a economia estimada seria de {formatar_reais(economia, casas=0)}/ano."
            )
        else:
            justificativa = (
                "Para seu perfil, a diferença entre os regimes é pequena no novo sistema. "
                "Mantenha o Lucro Presumido pela simplicidade operacional."
            )
        return AnaliseRegime(
            regime_atual=REGIME_DISPLAY_PRESUMIDO,
            regime_sugerido=REGIME_DISPLAY_REAL if deve_migrar else None,
            economia_estimada=economia if deve_migrar else None,
            justificativa=justificativa,
            fatores=(
                "Lucro Real permite crédito pleno de IBS e CBS",
                f"Carga atual estimada: {formatar_percentual(presumido.atual_media, casas=1, ja_percentual=True)}",
                f"Carga no Lucro Real: {formatar_percentual(real.atual_media, casas=1, ja_percentual=True)}",
                "Recomendação: avalie migração com seu contador"
                if deve_migrar
                else "Recomendação: manter regime atual",
                "Lucro Real exige escrituração contábil completa",
            ),
        )

    if inp.regime == REGIME_REAL:
        return AnaliseRegime(
            regime_atual=REGIME_DISPLAY_REAL,
            regime_sugerido=None,
            economia_estimada=None,
            justificativa=(
                "O Lucro Real é o regime que mais se beneficia da reforma por permitir aproveitamento pleno "
                "de créditos. Mantenha o foco em documentar bem todos os insumos para maximizar os créditos "
                "de IBS e CBS."
            ),
            fatores=(
                "Lucro Real já é o regime mais vantajoso para créditos",
                "Foco deve ser em maximizar documentação de insumos",
                "Split payment automatiza parte da apuração",
                "Transição tende a ser mais suave neste regime",
            ),
        )

    return AnaliseRegime(
        regime_atual=regime_display(inp.regime),
        regime_sugerido=None,
        economia_estimada=None,
        justificativa=(
            "Sem informação do regime atual, não é possível fazer uma comparação precisa. Recomendamos que "
            "consulte seu contador para identificar seu regime e simule novamente."
        ),
        fatores=(
            "Identifique seu regime tributário atual com seu contador",
            "Refaça a simulação com o regime correto para resultados precisos",
            "Cada regime tem impacto diferente na reforma",
        ),
    )


def gerar_erros_comuns(
    inp: SimuladorInput,
    percentual: float,
    pressao_formalizacao: str,
    max_itens: int = 5,
) -> Tuple[ErroComum, ...]:
    """Erros comuns do perfil, severidade alta primeiro; empates mantem a ordem do catalogo."""
    setor_nome = SETOR_DISPLAY.get(inp.setor, inp.setor).lower()
    pct = formatar_percentual(percentual, casas=1, ja_percentual=True)
    pequena = inp.faturamento in (FAIXA_ATE_81K, FAIXA_81K_360K)
    pressao_alta = pressao_formalizacao in (PRESSAO_ALTA, PRESSAO_MUITO_ALTA)
    erros: List[ErroComum] = []

    if inp.regime == REGIME_PRESUMIDO and percentual > 30:
        erros.append(
            ErroComum(
                id="regime_errado_lp",
                titulo="Ficar no Lucro Presumido sem reavaliar",
                descricao=(
                    "Com a reforma, o Lucro Real permite aproveitamento pleno de créditos de IBS/CBS. "
                    "Para seu perfil, a diferença pode ser significativa. "
                    "A escolha de regime é anual: errar significa pagar mais o ano inteiro."
                ),
                severidade=SEVERIDADE_ALTA,
                pergunta_sugerida="Vale a pena migrar do Lucro Presumido para o Lucro Real com a reforma?",
            )
        )
    if inp.regime == REGIME_NAO_SEI:
        erros.append(
            ErroComum(
                id="regime_nao_sei",
                titulo="Não saber seu regime tributário",
                descricao=(
                    "Cada regime é afetado de forma diferente pela reforma. "
                    "Sem saber seu regime, é impossível planejar a transição. "
                    "Consulte seu contador ou verifique no cartão CNPJ da Receita Federal."
                ),
                severidade=SEVERIDADE_ALTA,
                pergunta_sugerida="Como descubro meu regime tributário e por que isso importa na reforma?",
            )
        )
    if inp.setor in (SETOR_SERVICOS, SETOR_TECNOLOGIA, SETOR_SAUDE, SETOR_EDUCACAO) and percentual > 15:
        erros.append(
            ErroComum(
                id="nao_reprecificar_servicos",
                titulo="Não reprecificar para a nova carga tributária",
                descricao=(
                    f"O setor de {setor_nome} deve ter aumento de carga de até {pct}. "
                    "Sem ajuste de preços, a margem é consumida silenciosamente. "
                    "Contratos sem cláusula de reajuste tributário são os mais vulneráveis."
                ),
                severidade=SEVERIDADE_ALTA if percentual > 50 else SEVERIDADE_MEDIA,
                pergunta_sugerida="Quanto preciso ajustar meus preços para compensar a reforma tributária?",
            )
        )
    if (
        inp.setor in (SETOR_SERVICOS, SETOR_EDUCACAO, SETOR_SAUDE, SETOR_CONSTRUCAO, SETOR_TECNOLOGIA)
        and percentual > 10
    ):
        erros.append(
            ErroComum(
                id="contratos_sem_clausula",
                titulo="Contratos de longo prazo sem cláusula tributária",
                descricao=(
                    "Contratos de serviço, aluguel e fornecimento firmados antes da reforma "
                    "podem não ter previsão de reajuste por mudança tributária. "
                    f"No setor de {setor_nome}, isso pode significar anos absorvendo o aumento."
                ),
                severidade=SEVERIDADE_MEDIA,
                pergunta_sugerida="Como revisar meus contratos para incluir cláusula de reajuste tributário?",
            )
        )

    if inp.faturamento == FAIXA_ATE_81K:
        severidade_caixa = SEVERIDADE_BAIXA
    elif inp.faturamento == FAIXA_81K_360K:
        severidade_caixa = SEVERIDADE_MEDIA
    else:
        severidade_caixa = SEVERIDADE_ALTA
    erros.append(
        ErroComum(
            id="nao_planejar_fluxo_caixa",
            titulo="Não planejar o fluxo de caixa para a retenção automática",
            descricao=(
                "A partir de 2027, o imposto é retido na hora da venda, antes de chegar na sua conta. "
                "Hoje, esse dinheiro fica disponível por cerca de 40 dias. "
                "Sem planejamento, sua empresa pode ficar sem caixa para pagar fornecedores e folha."
            ),
            severidade=severidade_caixa,
            pergunta_sugerida="Como planejar meu fluxo de caixa para a retenção automática de impostos em 2027?",
        )
    )

    if inp.faturamento == FAIXA_ATE_81K:
        erros.append(
            ErroComum(
                id="mei_cpf_cnpj",
                titulo="Misturar finanças pessoais e do negócio",
                descricao=(
                    "A Receita Federal cruza dados de Pix e cartão com o faturamento declarado do MEI. "
                    "Receber pagamentos do negócio na conta pessoal (CPF) pode gerar alerta fiscal. "
                    "Renda pessoal também conta no limite de R$ 81.000/ano do MEI."
                ),
                severidade=SEVERIDADE_ALTA,
                pergunta_sugerida="Como MEI, preciso separar minhas contas pessoais das do negócio?",
            )
        )
        erros.append(
            ErroComum(
                id="mei_nanoempreendedor",
                titulo="Não saber sobre a categoria de nanoempreendedor",
                descricao=(
                    "A reforma cria o nanoempreendedor: quem fatura até R$ 40.500/ano é isento de IBS e CBS, "
                    "sem precisar se formalizar. Motoristas de app têm limite especial de R$ 162.000/ano. "
                    "Se você se enquadra, pode ter menos obrigações do que imagina."
                ),
                severidade=SEVERIDADE_BAIXA,
                pergunta_sugerida="O que é o nanoempreendedor e como saber se me enquadro?",
            )
        )

    if pressao_alta:
        erros.append(
            ErroComum(
                id="formalizacao_alta_pressao",
                titulo="Subestimar o custo da cobrança mais rigorosa",
                descricao=(
                    f"No setor de {setor_nome}, a diferença entre o que se paga e o que a lei exige é uma das maiores. "
                    "Com a retenção automática a partir de 2027, essa diferença vai a zero. "
                    "O impacto da cobrança mais rigorosa pode ser maior que a própria mudança de alíquotas."
                ),
                severidade=SEVERIDADE_ALTA if pressao_formalizacao == PRESSAO_MUITO_ALTA else SEVERIDADE_MEDIA,
                pergunta_sugerida="O que significa a cobrança mais rigorosa para meu setor e como me preparar?",
            )
        )
        erros.append(
            ErroComum(
                id="regularizacao_pendencias",
                titulo="Não verificar pendências fiscais antes da reforma",
                descricao=(
                    "Antes de 2027, existem programas de parcelamento com condições facilitadas (PGFN). "
                    "Depois que a cobrança automática começar, regularizar fica mais difícil e caro. "
                    "Verifique sua situação no e-CAC da Receita Federal."
                ),
                severidade=SEVERIDADE_MEDIA,
                pergunta_sugerida="Como verificar se tenho pendências fiscais e quais programas de regularização existem?",
            )
        )

    if inp.setor == SETOR_CONSTRUCAO:
        erros.append(
            ErroComum(
                id="construcao_subcontratados",
                titulo="Não formalizar a cadeia de subcontratados",
                descricao=(
                    "A construção civil tem a maior pressão de formalização entre todos os setores. "
                    "Subcontratados sem contrato formal não geram créditos de IBS/CBS. "
                    "Mapeie sua cadeia e formalize antes de 2027."
                ),
                severidade=SEVERIDADE_ALTA,
                pergunta_sugerida="Como devo formalizar meus subcontratados para aproveitar créditos na reforma?",
            )
        )
    if inp.setor == SETOR_AGRONEGOCIO:
        erros.append(
            ErroComum(
                id="agro_creditos_icms",
                titulo="Não recuperar créditos de ICMS acumulados",
                descricao=(
                    "O ICMS será extinto gradualmente até 2033. Créditos acumulados hoje "
                    "precisam ser recuperados ou compensados antes disso. "
                    "O prazo para planejar a recuperação é 2026-2027."
                ),
                severidade=SEVERIDADE_ALTA,
                pergunta_sugerida="Como recuperar meus créditos de ICMS acumulados antes que o imposto seja extinto?",
            )
        )
    if inp.setor == SETOR_EDUCACAO:
        erros.append(
            ErroComum(
                id="educacao_reducao_60",
                titulo="Não verificar o enquadramento na redução de 60%",
                descricao=(
                    "Serviços educacionais têm direito a redução de 60% na alíquota de IBS/CBS "
                    "(LC 214/2025, art. 259). Mas é preciso verificar se sua atividade se enquadra "
                    "nos critérios: nem todo serviço educacional é elegível."
                ),
                severidade=SEVERIDADE_MEDIA,
                pergunta_sugerida="Minha empresa de educação tem direito à redução de 60% na alíquota?",
            )
        )
    if pequena:
        porte = "MEI" if inp.faturamento == FAIXA_ATE_81K else "ME"
        erros.append(
            ErroComum(
                id="contabilidade_mais_cara",
                titulo="Não prever aumento de custos contábeis",
                descricao=(
                    "Durante a transição (2026-2033), sua empresa vai operar com dois sistemas tributários "
                    "simultâneos. Isso aumenta a complexidade e o custo da contabilidade. "
                    f"Para empresas do porte {porte}, planejar esse custo é essencial."
                ),
                severidade=SEVERIDADE_BAIXA,
                pergunta_sugerida="Quanto meus custos contábeis devem aumentar durante a transição da reforma?",
            )
        )

    # Ordenacao estavel: empates preservam a ordem de inclusao.
    erros.sort(key=lambda erro: _ORDEM_SEVERIDADE[erro.severidade])
    return tuple(erros[:max_itens])
