import unittest
from dataclasses import replace

from effectiveness_model import calcular_efetividade, classificar_pressao, fator_pos_reforma
from reference_data import FaixaCarga, FatorEfetividade, carregar_tabelas

LIMIARES = carregar_tabelas().limiares

FAIXA_SIMPLES_COMERCIO = FaixaCarga(
    regime="simples",
    setor="comercio",
    atual_min=4.0,
    atual_max=11.5,
    projetada_min=9.6,
    projetada_max=11.2,
    fator_ajuste=0.4,
)


class ClassificacaoPressaoTests(unittest.TestCase):
    def test_faixas_de_pressao(self) -> None:
        self.assertEqual(classificar_pressao(0.95, LIMIARES), "baixa")
        self.assertEqual(classificar_pressao(0.85, LIMIARES), "moderada")
        self.assertEqual(classificar_pressao(0.75, LIMIARES), "alta")
        self.assertEqual(classificar_pressao(0.65, LIMIARES), "muito_alta")

    def test_limites_caem_na_faixa_superior(self) -> None:
        self.assertEqual(classificar_pressao(0.9, LIMIARES), "moderada")
        self.assertEqual(classificar_pressao(0.8, LIMIARES), "alta")
        self.assertEqual(classificar_pressao(0.7, LIMIARES), "muito_alta")
        self.assertEqual(classificar_pressao(1.0, LIMIARES), "baixa")


class EfetividadeTests(unittest.TestCase):
    def test_fator_pos_reforma(self) -> None:
        self.assertAlmostEqual(fator_pos_reforma(0.65, 1.0), 1.0)
        self.assertAlmostEqual(fator_pos_reforma(0.65, 0.5), 0.825)
        self.assertAlmostEqual(fator_pos_reforma(0.65, 0.0), 0.65)

    def test_simples_comercio(self) -> None:
        fator = FatorEfetividade(medio=0.65, minimo=0.5, maximo=0.8, fonte="fonte")
        efetividade = calcular_efetividade(FAIXA_SIMPLES_COMERCIO, fator, LIMIARES)

        self.assertEqual(efetividade.carga_legal_pct, 7.75)
        self.assertAlmostEqual(efetividade.carga_efetiva_pct, 5.04, delta=0.011)
        self.assertAlmostEqual(efetividade.impacto_formalizacao, 54600, delta=1)
        self.assertAlmostEqual(efetividade.impacto_aliquota, 25838, delta=1)
        self.assertEqual(
            efetividade.impacto_total,
            efetividade.impacto_aliquota + efetividade.impacto_formalizacao,
        )
        self.assertEqual(efetividade.pressao_formalizacao, "muito_alta")
        self.assertIn("Pressão de formalização: muito alta.", efetividade.narrative)

    def test_sem_convergencia_nao_ha_custo_de_formalizacao(self) -> None:
        fator = FatorEfetividade(medio=0.65, minimo=0.5, maximo=0.8, fonte="fonte")
        limiares = replace(LIMIARES, convergencia_formalizacao=0.0)
        efetividade = calcular_efetividade(FAIXA_SIMPLES_COMERCIO, fator, limiares)
        self.assertEqual(efetividade.impacto_formalizacao, 0)
        self.assertEqual(efetividade.impacto_total, efetividade.impacto_aliquota)
        self.assertIn("Não há custo adicional de formalização", efetividade.narrative)

    def test_fator_pleno_sem_formalizacao(self) -> None:
        fator = FatorEfetividade(medio=1.0, minimo=1.0, maximo=1.0, fonte="fonte")
        efetividade = calcular_efetividade(FAIXA_SIMPLES_COMERCIO, fator, LIMIARES)
        self.assertEqual(efetividade.impacto_formalizacao, 0)
        self.assertEqual(efetividade.pressao_formalizacao, "baixa")
        self.assertEqual(efetividade.carga_efetiva_pct, efetividade.carga_legal_pct)


if __name__ == "__main__":
    unittest.main()
