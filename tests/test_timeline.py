import unittest

from reference_data import carregar_tabelas
from timeline import NARRATIVAS, fontes_timeline, gerar_timeline, projetar_anos


class TimelineTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.tabelas = carregar_tabelas()
        cls.faixa = cls.tabelas.faixa_carga_regime("simples", "comercio").valor

    def test_calendario_fixo_2026_2033(self) -> None:
        timeline = gerar_timeline("medio", self.tabelas)
        self.assertEqual([e.ano for e in timeline.entries], list(range(2026, 2034)))
        self.assertEqual(timeline.entries[-1].aliquota_ibs, 17.7)
        self.assertEqual(timeline.entries[-1].aliquota_cbs, 8.8)

    def test_apenas_narrativa_depende_do_risco(self) -> None:
        baixo = gerar_timeline("baixo", self.tabelas)
        critico = gerar_timeline("critico", self.tabelas)
        self.assertEqual(baixo.entries, critico.entries)
        self.assertEqual(baixo.narrative, NARRATIVAS["baixo"])
        self.assertEqual(critico.narrative, NARRATIVAS["critico"])
        self.assertNotEqual(baixo.narrative, critico.narrative)

    def test_fontes_timeline_sem_repeticao(self) -> None:
        fontes = fontes_timeline(self.tabelas)
        self.assertEqual(len(fontes), len(set(fontes)))
        self.assertTrue(fontes)

    def test_projecao_converge_para_carga_nova(self) -> None:
        projecao = projetar_anos(self.faixa, 1_500_000.0, self.tabelas)
        self.assertEqual(len(projecao), 8)
        self.assertEqual(projecao[0].ano, 2026)
        self.assertAlmostEqual(projecao[0].carga_estimada_pct, 7.85, places=2)
        self.assertAlmostEqual(projecao[-1].carga_estimada_pct, 10.4, places=2)
        self.assertAlmostEqual(projecao[-1].diferenca_vs_atual, 39750, delta=1)

    def test_projecao_monotona_quando_carga_sobe(self) -> None:
        projecao = projetar_anos(self.faixa, 1_500_000.0, self.tabelas)
        cargas = [p.carga_estimada_pct for p in projecao]
        self.assertEqual(cargas, sorted(cargas))


if __name__ == "__main__":
    unittest.main()
