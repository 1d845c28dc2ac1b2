import unittest

from combinations import (
    combinacoes_setor_regime,
    combinacoes_setor_uf,
    entradas_setor_regime,
    entradas_setor_uf,
    gerar_paginas,
    pagina_icms_uf,
    pagina_setor_regime,
    pagina_setor_uf,
    simular_lote,
)
from reference_data import carregar_tabelas


class CombinacoesTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.tabelas = carregar_tabelas()

    def test_contagens(self) -> None:
        self.assertEqual(len(list(combinacoes_setor_uf())), 9 * 27)
        self.assertEqual(len(list(combinacoes_setor_regime())), 9 * 3)
        self.assertEqual(len(list(entradas_setor_uf())), 9 * 27 * 3)
        self.assertEqual(len(list(entradas_setor_regime())), 27)

    def test_setor_generico_fica_fora_das_paginas(self) -> None:
        self.assertNotIn("outro", {setor for setor, _ in combinacoes_setor_uf()})

    def test_lote_preserva_ordem_com_workers(self) -> None:
        entradas = list(entradas_setor_regime())
        sequencial = list(simular_lote(entradas, workers=1, tabelas=self.tabelas))
        paralelo = list(simular_lote(entradas, workers=4, tabelas=self.tabelas))
        self.assertEqual([inp for inp, _ in paralelo], entradas)
        self.assertEqual(sequencial, paralelo)

    def test_pagina_setor_uf(self) -> None:
        pagina = pagina_setor_uf("comercio", "SP", tabelas=self.tabelas)
        self.assertEqual(pagina["tipo"], "setor_uf")
        self.assertEqual(pagina["slug"], "comercio-sp")
        self.assertEqual([r["regime"] for r in pagina["regimes"]], ["simples", "lucro_presumido", "lucro_real"])
        self.assertEqual(pagina["ajuste_icms"]["direcao"], "favoravel")

    def test_pagina_setor_regime(self) -> None:
        pagina = pagina_setor_regime("servicos", "lucro_presumido", tabelas=self.tabelas)
        self.assertEqual(pagina["slug"], "servicos-lucro-presumido")
        self.assertEqual(pagina["nivel_risco"], "critico")
        self.assertIsNone(pagina["ajuste_icms"])

    def test_pagina_icms_uf(self) -> None:
        pagina = pagina_icms_uf("RJ", tabelas=self.tabelas)
        self.assertEqual(pagina["slug"], "icms-rj")
        self.assertEqual(pagina["icms_rate"], 22.0)
        self.assertEqual(pagina["icms_rate_texto"], "22,0%")
        self.assertEqual(pagina["maior_aliquota"], {"uf": "MA", "aliquota": 23.0})
        self.assertEqual(sorted(pagina["setores"]), ["agronegocio", "comercio", "construcao", "industria"])

    def test_gerar_paginas_completo(self) -> None:
        paginas = list(gerar_paginas(workers=2, tabelas=self.tabelas))
        self.assertEqual(len(paginas), 243 + 27 + 27)
        slugs = [slug for slug, _ in paginas]
        self.assertEqual(len(slugs), len(set(slugs)))
        self.assertEqual(slugs[0], "comercio-ac")
        self.assertEqual(slugs[-1], "icms-to")


if __name__ == "__main__":
    unittest.main()
