import unittest
from copy import deepcopy

import ruleset_loader
from dominio import FAIXAS_FATURAMENTO, SETORES, UFS
from dto import SimuladorInput, SimuladorResult
from reference_data import DIMENSAO_SETOR, carregar_tabelas, montar_tabelas
from regime_utils import REGIMES
from risk_engine import ALERTA_ANO_TESTE, ALERTA_CRITICO, ALERTA_NAO_SEI, ALERTA_SIMPLES_B2B, ALERTA_SPLIT_PAYMENT
from tax_engine import SimulationService, simular


class SimulationServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.tabelas = carregar_tabelas()
        cls.service = SimulationService(cls.tabelas)

    def _run(self, regime: str, setor: str, faturamento: str = "360k_4.8m", uf: str = "SP") -> SimuladorResult:
        return self.service.run(SimuladorInput(regime=regime, setor=setor, faturamento=faturamento, uf=uf))

    def test_varejo_sp_simples(self) -> None:
        result = self._run("simples", "varejo")

        self.assertEqual(result.entrada.setor, "comercio")
        self.assertEqual(result.nivel_risco, "medio")
        self.assertEqual(result.impacto_anual.percentual, 34.2)
        self.assertEqual(result.impacto_anual.valor_anual, 39750)
        self.assertEqual(result.impacto_anual.valor_min, -28500)
        self.assertEqual(result.impacto_anual.valor_max, 108000)

        self.assertEqual(result.efetividade_tributaria.fator_efetividade, 0.65)
        self.assertEqual(result.efetividade_tributaria.pressao_formalizacao, "muito_alta")

        ajuste = result.ajuste_icms
        self.assertIsNotNone(ajuste)
        self.assertEqual(ajuste.uf_nome, "São Paulo")
        self.assertEqual(ajuste.margem_bruta, 0.30)
        self.assertEqual(ajuste.impacto_carga_pp, -0.27)
        self.assertEqual(ajuste.direcao, "favoravel")

        self.assertEqual(result.metodologia.confianca, "alta")
        self.assertEqual(len(result.comparativo_regimes), 3)
        self.assertEqual(len(result.alertas), 4)
        self.assertTrue(result.alertas[0].startswith("Pressão de formalização muito alta:"))
        self.assertEqual(list(result.alertas[1:]), [ALERTA_SIMPLES_B2B, ALERTA_ANO_TESTE, ALERTA_SPLIT_PAYMENT])
        self.assertEqual(result.analise_regime.regime_atual, "Simples Nacional")
        self.assertIsNone(result.analise_regime.regime_sugerido)
        self.assertEqual(len(result.checklist), 17)

    def test_nao_sei_e_mais_conservador(self) -> None:
        simples = self._run("simples", "comercio")
        nao_sei = self._run("nao_sei", "comercio")

        self.assertEqual(nao_sei.impacto_anual.percentual, 160.0)
        self.assertEqual(nao_sei.nivel_risco, "critico")
        self.assertEqual(nao_sei.metodologia.confianca, "baixa")
        self.assertIn(ALERTA_NAO_SEI, nao_sei.alertas)
        self.assertIn(ALERTA_CRITICO, nao_sei.alertas)
        self.assertEqual(nao_sei.ajuste_icms, simples.ajuste_icms)
        self.assertEqual(nao_sei.comparativo_regimes, simples.comparativo_regimes)

    def test_servicos_presumido_critico_sem_icms(self) -> None:
        result = self._run("lucro_presumido", "servicos")
        self.assertEqual(result.impacto_anual.percentual, 128.9)
        self.assertEqual(result.nivel_risco, "critico")
        self.assertIsNone(result.ajuste_icms)
        self.assertEqual(result.alertas[0], ALERTA_CRITICO)
        self.assertEqual(result.analise_regime.regime_sugerido, "Lucro Real")
        self.assertEqual(result.analise_regime.economia_estimada, 99375)
        self.assertIn("Avaliar timing ideal para eventual migração de regime", result.checklist)

    def test_uf_desconhecida_reduz_confianca_para_media(self) -> None:
        result = self._run("simples", "comercio", uf="ZZ")
        self.assertEqual(result.metodologia.confianca, "media")
        self.assertEqual(result.ajuste_icms.ajuste_pp, 0.0)
        self.assertEqual(result.ajuste_icms.direcao, "neutro")
        self.assertTrue(any("ZZ" in item for item in result.metodologia.limitacoes))

    def test_setor_outro_usa_linha_generica(self) -> None:
        result = self._run("lucro_real", "outro")
        self.assertEqual(result.metodologia.confianca, "media")
        self.assertIsNone(result.ajuste_icms)
        limitacoes = result.metodologia.limitacoes
        self.assertEqual(len(limitacoes), len(set(limitacoes)))

    def test_deterministico(self) -> None:
        primeiro = self._run("lucro_real", "industria", uf="RJ")
        segundo = self._run("lucro_real", "industria", uf="RJ")
        self.assertEqual(primeiro, segundo)
        self.assertEqual(primeiro.to_dict(), segundo.to_dict())

    def test_to_dict_from_dict(self) -> None:
        result = self._run("simples", "agronegocio", uf="GO")
        self.assertEqual(SimuladorResult.from_dict(result.to_dict()), result)

    def test_fontes_e_limitacoes_sem_repeticao(self) -> None:
        result = self._run("nao_sei", "outro", uf="AM")
        fontes = result.metodologia.fontes
        self.assertEqual(len(fontes), len(set(fontes)))
        self.assertEqual(len(result.metodologia.limitacoes), len(set(result.metodologia.limitacoes)))

    def test_simular_usa_tabelas_informadas(self) -> None:
        inp = SimuladorInput(regime="lucro_real", setor="tecnologia", faturamento="acima_78m", uf="DF")
        self.assertEqual(simular(inp, self.tabelas), self._run("lucro_real", "tecnologia", "acima_78m", "DF"))

    def test_setor_sem_linha_com_regime_conhecido_degrada_so_o_setor(self) -> None:
        payloads = deepcopy(ruleset_loader.load_all(ruleset_loader.DEFAULT_RULESET_ID))
        del payloads[ruleset_loader.ARQUIVO_SETORES]["setores"]["tecnologia"]
        for arquivo in (ruleset_loader.ARQUIVO_CARGA_ATUAL, ruleset_loader.ARQUIVO_EFETIVIDADE):
            for por_setor in payloads[arquivo]["regimes"].values():
                por_setor.pop("tecnologia", None)
        tabelas = montar_tabelas("TESTE", payloads)

        result = simular(SimuladorInput("lucro_real", "tecnologia", "360k_4.8m", "SP"), tabelas)
        self.assertEqual(result.metodologia.confianca, "media")
        self.assertEqual(result.efetividade_tributaria.fator_efetividade, 0.88)

        faixa = tabelas.faixa_carga_regime("lucro_real", "tecnologia")
        self.assertEqual(faixa.dimensao, DIMENSAO_SETOR)
        self.assertTrue(faixa.degradada)
        self.assertEqual((faixa.valor.atual_min, faixa.valor.atual_max), (9.25, 14.0))
        self.assertEqual(faixa.valor.fator_ajuste, 0.75)
        self.assertEqual(tabelas.fator_efetividade("lucro_real", "tecnologia").dimensao, DIMENSAO_SETOR)

    def test_produto_cartesiano_completo(self) -> None:
        setores_icms = {"comercio", "industria", "agronegocio", "construcao"}
        total = 0
        for setor in SETORES:
            for uf in UFS:
                for regime in REGIMES:
                    for faixa in FAIXAS_FATURAMENTO:
                        result = self._run(regime, setor, faixa, uf)
                        total += 1
                        self.assertIn(result.nivel_risco, ("baixo", "medio", "alto", "critico"))
                        self.assertIn(result.metodologia.confianca, ("alta", "media", "baixa"))
                        self.assertEqual(len(result.comparativo_regimes), 3)
                        self.assertEqual((result.ajuste_icms is not None), setor in setores_icms)
                        impacto = result.impacto_anual
                        self.assertLessEqual(impacto.valor_min, impacto.valor_anual)
                        self.assertLessEqual(impacto.valor_anual, impacto.valor_max)
                        self.assertEqual(result.alertas[-2:], (ALERTA_ANO_TESTE, ALERTA_SPLIT_PAYMENT))
                        self.assertEqual(len(result.projecao_anual), 8)
                        self.assertGreaterEqual(result.efetividade_tributaria.impacto_formalizacao, 0)
                        if regime == "nao_sei":
                            self.assertEqual(result.metodologia.confianca, "baixa")
        self.assertEqual(total, 10 * 27 * 4 * 5)


if __name__ == "__main__":
    unittest.main()
