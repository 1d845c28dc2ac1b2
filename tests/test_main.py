import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

import main as cli
from tools.gerar_paginas import gerar_arquivos

ARGS_VAREJO_SP = ["--setor", "varejo", "--uf", "SP", "--regime", "simples", "--faturamento", "epp"]


class MainCliTests(unittest.TestCase):
    def _executar(self, argv):
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            code = cli.main(argv)
        return code, buffer.getvalue()

    def test_relatorio_texto(self) -> None:
        code, saida = self._executar(ARGS_VAREJO_SP)
        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn("RELATÓRIO - IMPACTO DA REFORMA TRIBUTÁRIA", saida)
        self.assertIn("Nível de risco: Médio", saida)

    def test_saida_json(self) -> None:
        code, saida = self._executar(ARGS_VAREJO_SP + ["--json"])
        self.assertEqual(code, cli.EXIT_OK)
        payload = json.loads(saida)
        self.assertEqual(payload["entrada"]["setor"], "comercio")
        self.assertEqual(payload["impacto_anual"]["valor_anual"], 39750)

    def test_receita_substitui_faixa(self) -> None:
        code, saida = self._executar(
            ["--setor", "comercio", "--uf", "SP", "--regime", "simples", "--receita", "60000", "--json"]
        )
        self.assertEqual(code, cli.EXIT_OK)
        self.assertEqual(json.loads(saida)["entrada"]["faturamento"], "ate_81k")

    def test_erro_de_validacao(self) -> None:
        code, saida = self._executar(["--setor", "comercio", "--regime", "simples", "--faturamento", "epp"])
        self.assertEqual(code, cli.EXIT_VALIDACAO)
        self.assertIn("Erro: Campos obrigatórios ausentes: uf.", saida)

    def test_ruleset_inexistente(self) -> None:
        code, saida = self._executar(ARGS_VAREJO_SP + ["--ruleset-id", "RULESET_QUE_NAO_EXISTE"])
        self.assertEqual(code, cli.EXIT_RULESET)
        self.assertIn("Erro ao carregar ruleset", saida)

    def test_exporta_txt_json_e_pdf(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            targets = {
                "outputs_txt_pasta": os.path.join(tmp, "txt"),
                "outputs_pdf_pasta": os.path.join(tmp, "pdf"),
                "paginas_pasta": os.path.join(tmp, "paginas"),
                "auditoria_pasta": os.path.join(tmp, "txt"),
            }
            with patch("main.resolve_output_targets", return_value=targets):
                code, _ = self._executar(ARGS_VAREJO_SP + ["--txt", "--salvar-json", "--pdf"])

            self.assertEqual(code, cli.EXIT_OK)
            arquivos_txt = sorted(os.listdir(targets["outputs_txt_pasta"]))
            self.assertEqual(len(arquivos_txt), 2)
            self.assertTrue(all(nome.startswith("simulacao_comercio_sp_simples_") for nome in arquivos_txt))
            self.assertEqual(len(os.listdir(targets["outputs_pdf_pasta"])), 1)

    def test_salvar_json_sem_txt(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            targets = {
                "outputs_txt_pasta": os.path.join(tmp, "txt"),
                "outputs_pdf_pasta": os.path.join(tmp, "pdf"),
                "paginas_pasta": os.path.join(tmp, "paginas"),
                "auditoria_pasta": os.path.join(tmp, "txt"),
            }
            with patch("main.resolve_output_targets", return_value=targets):
                code, saida = self._executar(ARGS_VAREJO_SP + ["--salvar-json"])

            self.assertEqual(code, cli.EXIT_OK)
            self.assertIn("Resultado JSON salvo em:", saida)
            arquivos = os.listdir(targets["outputs_txt_pasta"])
            self.assertEqual(len(arquivos), 1)
            self.assertTrue(arquivos[0].endswith(".json"))
            with open(os.path.join(targets["outputs_txt_pasta"], arquivos[0]), "r", encoding="utf-8") as f:
                self.assertEqual(json.load(f)["analise_regime"]["regime_atual"], "Simples Nacional")


class GerarPaginasTests(unittest.TestCase):
    def test_gerar_arquivos(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            contagem = gerar_arquivos(tmp, workers=2)
            self.assertEqual(contagem, {"setor_uf": 243, "setor_regime": 27, "icms_uf": 27})
            self.assertEqual(len(os.listdir(tmp)), 297)
            with open(os.path.join(tmp, "icms-sp.json"), "r", encoding="utf-8") as f:
                self.assertEqual(json.load(f)["uf_nome"], "São Paulo")


if __name__ == "__main__":
    unittest.main()
