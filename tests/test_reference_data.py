import unittest
from copy import deepcopy

import reference_data
import ruleset_loader
from reference_data import (
    DESFECHO_DEFAULT,
    DESFECHO_EXATO,
    DIMENSAO_REGIME,
    DIMENSAO_SETOR,
    DIMENSAO_UF,
    RegistroConsultas,
    calcular_referencia_nacional,
    carregar_tabelas,
    montar_tabelas,
)


class ReferenceDataTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.tabelas = carregar_tabelas(ruleset_loader.DEFAULT_RULESET_ID)
        cls.payloads = ruleset_loader.load_all(ruleset_loader.DEFAULT_RULESET_ID)

    def test_referencia_nacional_ponderada_pelo_pib(self) -> None:
        # 1873,7 / 99,2
        self.assertAlmostEqual(self.tabelas.icms_referencia, 18.8881, places=3)
        recalculada = calcular_referencia_nacional(
            {uf: (a.valor, self.tabelas.pesos_pib[uf]) for uf, a in self.tabelas.icms_uf.items()}
        )
        self.assertAlmostEqual(self.tabelas.icms_referencia, recalculada, places=4)

    def test_referencia_nacional_exemplo_simples(self) -> None:
        self.assertAlmostEqual(calcular_referencia_nacional({"A": (10.0, 1.0), "B": (20.0, 3.0)}), 17.5)
        with self.assertRaises(ValueError):
            calcular_referencia_nacional({"A": (10.0, 0.0)})

    def test_icms_exato_e_default(self) -> None:
        registro = RegistroConsultas()
        sp = self.tabelas.icms_modal_rate("SP", registro)
        self.assertEqual(sp.desfecho, DESFECHO_EXATO)
        self.assertEqual(sp.valor.valor, 18.0)

        zz = self.tabelas.icms_modal_rate("ZZ", registro)
        self.assertEqual(zz.desfecho, DESFECHO_DEFAULT)
        self.assertEqual(zz.valor.valor, self.tabelas.icms_referencia)
        self.assertEqual(registro.dimensoes_degradadas(), (DIMENSAO_UF,))
        self.assertEqual(len(registro.motivos()), 1)

    def test_perfil_setor_outro_sempre_default(self) -> None:
        consulta = self.tabelas.perfil_setor("outro")
        self.assertTrue(consulta.degradada)
        self.assertEqual(consulta.dimensao, DIMENSAO_SETOR)
        self.assertEqual(consulta.motivo, reference_data.MOTIVO_SETOR_GENERICO)
        self.assertFalse(self.tabelas.perfil_setor("comercio").degradada)

    def test_perfil_setor_desconhecido_usa_linha_generica(self) -> None:
        consulta = self.tabelas.perfil_setor("astronautica")
        self.assertTrue(consulta.degradada)
        self.assertEqual(consulta.valor.setor, "outro")

    def test_faixa_carga_simples_comercio(self) -> None:
        consulta = self.tabelas.faixa_carga_regime("simples", "comercio")
        faixa = consulta.valor
        self.assertEqual(consulta.desfecho, DESFECHO_EXATO)
        self.assertEqual((faixa.atual_min, faixa.atual_max), (4.0, 11.5))
        self.assertAlmostEqual(faixa.projetada_min, 9.6)
        self.assertAlmostEqual(faixa.projetada_max, 11.2)
        self.assertEqual(len(consulta.fontes), 3)

    def test_faixa_carga_nao_sei_e_default_de_regime(self) -> None:
        consulta = self.tabelas.faixa_carga_regime("nao_sei", "comercio")
        self.assertTrue(consulta.degradada)
        self.assertEqual(consulta.dimensao, DIMENSAO_REGIME)
        self.assertEqual(consulta.motivo, reference_data.MOTIVO_REGIME_NAO_INFORMADO)
        self.assertAlmostEqual(consulta.valor.projetada_min, 20.4)
        self.assertAlmostEqual(consulta.valor.projetada_max, 23.8)

    def test_faixa_carga_linha_ausente_cai_na_conservadora(self) -> None:
        consulta = self.tabelas.faixa_carga_regime("regime_x", "comercio")
        self.assertTrue(consulta.degradada)
        self.assertEqual((consulta.valor.atual_min, consulta.valor.atual_max), (5.0, 12.0))
        self.assertEqual(consulta.valor.fator_ajuste, 0.85)

    def test_fator_efetividade(self) -> None:
        consulta = self.tabelas.fator_efetividade("simples", "comercio")
        self.assertFalse(consulta.degradada)
        self.assertEqual(consulta.valor.medio, 0.65)
        self.assertTrue(self.tabelas.fator_efetividade("regime_x", "setor_x").degradada)

    def test_faturamento_referencia(self) -> None:
        self.assertEqual(self.tabelas.faturamento_referencia("360k_4.8m").valor.valor, 1_500_000.0)
        padrao = self.tabelas.faturamento_referencia("faixa_x")
        self.assertTrue(padrao.degradada)
        self.assertEqual(padrao.valor.faixa, "360k_4.8m")

    def test_margem_bruta(self) -> None:
        self.assertEqual(self.tabelas.margem_bruta("comercio"), 0.30)
        self.assertEqual(self.tabelas.margem_bruta("servicos"), self.tabelas.margem_bruta_padrao)

    def test_tabelas_sao_imutaveis(self) -> None:
        with self.assertRaises(TypeError):
            self.tabelas.icms_uf["SP"] = None  # type: ignore[index]
        self.assertEqual(len(self.tabelas.ruleset_hash), 64)
        self.assertEqual(len(self.tabelas.marcos_transicao), 8)

    def test_montagem_erro_estruturado_linha_padrao_ausente(self) -> None:
        payloads = deepcopy(self.payloads)
        del payloads[ruleset_loader.ARQUIVO_SETORES]["setores"]["outro"]
        with self.assertRaises(ValueError) as ctx:
            montar_tabelas("TESTE", payloads)
        msg = str(ctx.exception)
        self.assertIn("ruleset_id=TESTE", msg)
        self.assertIn("arquivo=setores.json", msg)
        self.assertIn("chave=setores.outro", msg)
        self.assertIn("linha padrao ausente", msg)

    def test_montagem_erro_valor_nao_numerico(self) -> None:
        payloads = deepcopy(self.payloads)
        payloads[ruleset_loader.ARQUIVO_ICMS_UF]["ufs"]["SP"]["aliquota"] = "18%"
        with self.assertRaises(ValueError) as ctx:
            montar_tabelas("TESTE", payloads)
        self.assertIn("chave=ufs.SP.aliquota", str(ctx.exception))
        self.assertIn("valor nao numerico", str(ctx.exception))

    def test_montagem_erro_fator_fora_do_intervalo(self) -> None:
        payloads = deepcopy(self.payloads)
        payloads[ruleset_loader.ARQUIVO_EFETIVIDADE]["regimes"]["simples"]["comercio"]["medio"] = 1.2
        with self.assertRaises(ValueError) as ctx:
            montar_tabelas("TESTE", payloads)
        self.assertIn("arquivo=efetividade.json", str(ctx.exception))

    def test_montagem_arquivo_ausente(self) -> None:
        payloads = deepcopy(self.payloads)
        del payloads[ruleset_loader.ARQUIVO_TRANSICAO]
        with self.assertRaises(ValueError) as ctx:
            montar_tabelas("TESTE", payloads)
        self.assertIn("arquivo=transicao.json", str(ctx.exception))


class RecargaAtomicaTests(unittest.TestCase):
    def setUp(self) -> None:
        self._anterior = reference_data._ATIVAS

    def tearDown(self) -> None:
        reference_data._ATIVAS = self._anterior

    def test_recarga_nao_altera_snapshot_anterior(self) -> None:
        snapshot = reference_data.get_tabelas()
        novas = reference_data.recarregar_tabelas(ruleset_loader.DEFAULT_RULESET_ID)

        self.assertIsNot(snapshot, novas)
        self.assertIs(reference_data.get_tabelas(), novas)
        self.assertEqual(snapshot.icms_uf["SP"].valor, 18.0)
        self.assertEqual(snapshot.ruleset_hash, novas.ruleset_hash)

    def test_ativar_tabelas_devolve_anterior(self) -> None:
        atual = reference_data.get_tabelas()
        outra = carregar_tabelas(ruleset_loader.DEFAULT_RULESET_ID)
        anterior = reference_data.ativar_tabelas(outra)
        self.assertIs(anterior, atual)
        self.assertIs(reference_data.get_tabelas(), outra)


if __name__ == "__main__":
    unittest.main()
