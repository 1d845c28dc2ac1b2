import tempfile
import unittest
from unittest.mock import patch

import ruleset_loader
from ruleset_loader import DEFAULT_RULESET_ID
from tools.ruleset_audit import (
    audit_ruleset,
    get_integrity_summary,
    render_audit_report_text,
    validate_icms_uf,
    validate_transicao,
    write_audit_report,
)


class RulesetAuditTests(unittest.TestCase):
    def setUp(self) -> None:
        ruleset_loader.clear_cache()

    def test_audit_ruleset_default_pass_and_hashes(self) -> None:
        result = audit_ruleset(DEFAULT_RULESET_ID)
        self.assertEqual(result.get("overall_status"), "PASS", result.get("differences"))
        self.assertEqual(len(result.get("ruleset_hash_sha256", "")), 64)
        self.assertEqual(set(result["ruleset_file_hashes"]), set(ruleset_loader.RULESET_FILES))
        self.assertAlmostEqual(result["icms_referencia"], 18.8881, places=3)

    def test_integrity_summary(self) -> None:
        summary = get_integrity_summary(DEFAULT_RULESET_ID)
        self.assertEqual(summary["status"], "PASS")
        self.assertEqual(summary["failure_count"], 0)

    def test_validate_icms_detecta_uf_faltante(self) -> None:
        payload = ruleset_loader.get_icms_uf(DEFAULT_RULESET_ID)
        del payload["ufs"]["TO"]
        payload["ufs"]["SP"]["aliquota"] = 0
        checks = {c.name: c for c in validate_icms_uf(payload)}
        self.assertEqual(checks["ICMS: 27 UFs"].status, "FAIL")
        self.assertEqual(checks["ICMS: aliquota e peso positivos"].status, "FAIL")
        self.assertEqual(checks["ICMS: aliquota e peso positivos"].actual, ["SP"])

    def test_validate_transicao_detecta_ano_fora_de_ordem(self) -> None:
        payload = ruleset_loader.get_transicao(DEFAULT_RULESET_ID)
        payload["marcos"][0], payload["marcos"][1] = payload["marcos"][1], payload["marcos"][0]
        checks = {c.name: c for c in validate_transicao(payload)}
        self.assertEqual(checks["Transicao: anos contiguos"].status, "FAIL")

    def test_audit_detecta_arquivo_corrompido(self) -> None:
        load_file_original = ruleset_loader.load_file

        def load_file_corrompido(ruleset_id, filename):
            payload = load_file_original(ruleset_id, filename)
            if filename == ruleset_loader.ARQUIVO_EFETIVIDADE:
                payload["regimes"]["simples"]["comercio"]["medio"] = 1.5
            return payload

        with patch.object(ruleset_loader, "load_file", side_effect=load_file_corrompido):
            result = audit_ruleset(DEFAULT_RULESET_ID)

        self.assertEqual(result["overall_status"], "FAIL")
        nomes = {c["name"] for c in result["differences"]}
        self.assertIn("Montagem das tabelas de referencia", nomes)

    def test_audit_ruleset_inexistente(self) -> None:
        result = audit_ruleset("RULESET_QUE_NAO_EXISTE")
        self.assertEqual(result["overall_status"], "FAIL")
        self.assertIsNone(result["icms_referencia"])

    def test_render_and_write_report(self) -> None:
        result = audit_ruleset(DEFAULT_RULESET_ID)
        txt = render_audit_report_text(result)
        self.assertIn("=== RULESET AUDIT REPORT ===", txt)
        self.assertIn("[PASS] ICMS: 27 UFs", txt)
        with tempfile.TemporaryDirectory() as tmp:
            path = write_audit_report(result, output_dir=tmp)
            with open(path, "r", encoding="utf-8") as f:
                self.assertIn(f"Ruleset: {DEFAULT_RULESET_ID}", f.read())


if __name__ == "__main__":
    unittest.main()
