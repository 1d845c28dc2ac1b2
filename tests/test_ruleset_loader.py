import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import ruleset_loader
from ruleset_loader import (
    DEFAULT_RULESET_ID,
    RULESET_FILES,
    get_efetividade,
    get_icms_uf,
    get_setores,
    get_thresholds,
    get_transicao,
    load_all,
    load_ruleset,
)


class RulesetLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        ruleset_loader.clear_cache()

    def test_load_ruleset_metadata(self) -> None:
        metadata = load_ruleset(DEFAULT_RULESET_ID)
        self.assertEqual(metadata.get("ruleset_id"), "BR_REFORMA_2026_V1")
        self.assertEqual(metadata.get("ultima_atualizacao"), "2025-07-15")

    def test_icms_uf_contem_27_ufs(self) -> None:
        ufs = get_icms_uf(DEFAULT_RULESET_ID)["ufs"]
        self.assertEqual(len(ufs), 27)
        self.assertEqual(ufs["SP"]["aliquota"], 18.0)
        self.assertEqual(ufs["MA"]["aliquota"], 23.0)

    def test_setores_contem_linha_outro(self) -> None:
        setores = get_setores(DEFAULT_RULESET_ID)["setores"]
        self.assertIn("outro", setores)
        self.assertTrue(setores["comercio"]["tributado_icms"])
        self.assertFalse(setores["servicos"]["tributado_icms"])

    def test_transicao_e_thresholds(self) -> None:
        marcos = get_transicao(DEFAULT_RULESET_ID)["marcos"]
        self.assertEqual([m["ano"] for m in marcos], list(range(2026, 2034)))
        thresholds = get_thresholds(DEFAULT_RULESET_ID)
        self.assertEqual(thresholds["risco"]["critico_pct"], 100.0)

    def test_efetividade_tem_linha_padrao(self) -> None:
        regimes = get_efetividade(DEFAULT_RULESET_ID)["regimes"]
        self.assertIn("outro", regimes["nao_sei"])

    def test_load_all_indexa_por_arquivo(self) -> None:
        payloads = load_all(DEFAULT_RULESET_ID)
        self.assertEqual(set(payloads), set(RULESET_FILES))

    def test_cache_devolve_copia(self) -> None:
        primeiro = get_icms_uf(DEFAULT_RULESET_ID)
        primeiro["ufs"]["SP"]["aliquota"] = 99.0
        segundo = get_icms_uf(DEFAULT_RULESET_ID)
        self.assertEqual(segundo["ufs"]["SP"]["aliquota"], 18.0)

    def test_ruleset_inexistente(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_ruleset("RULESET_QUE_NAO_EXISTE")

    def test_load_ruleset_resolve_meipass_when_frozen(self) -> None:
        ruleset_id = "TEST_FROZEN_RULESET"

        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            rs_dir = base / "rulesets" / ruleset_id
            rs_dir.mkdir(parents=True, exist_ok=True)

            metadata = {
                "ruleset_id": ruleset_id,
                "ultima_atualizacao": "2025-01-01",
                "descricao": "ruleset de teste frozen",
            }
            with open(rs_dir / "metadata.json", "w", encoding="utf-8") as f:
                json.dump(metadata, f, ensure_ascii=False)

            with patch.object(ruleset_loader.sys, "frozen", True, create=True), patch.object(
                ruleset_loader.sys, "_MEIPASS", str(base), create=True
            ):
                loaded = load_ruleset(ruleset_id)

            self.assertEqual(loaded["ruleset_id"], ruleset_id)

    def test_arquivo_nao_objeto_gera_value_error(self) -> None:
        ruleset_id = "TEST_LISTA_RULESET"

        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            rs_dir = base / "rulesets" / ruleset_id
            rs_dir.mkdir(parents=True, exist_ok=True)
            with open(rs_dir / "metadata.json", "w", encoding="utf-8") as f:
                json.dump([1, 2, 3], f)

            with patch.object(ruleset_loader, "_runtime_base_dir", return_value=str(base)):
                with self.assertRaises(ValueError):
                    load_ruleset(ruleset_id)


if __name__ == "__main__":
    unittest.main()
