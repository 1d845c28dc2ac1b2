import logging
import os
import unittest
from unittest.mock import patch

from app_config import (
    DEMO_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    RULESET_ENV_VAR,
    resolve_demo_mode,
    resolve_log_level,
    resolve_output_targets,
    resolve_ruleset_id,
)
from ruleset_loader import DEFAULT_RULESET_ID


class AppConfigTests(unittest.TestCase):
    def test_resolve_demo_mode_or_env_flag(self) -> None:
        with patch.dict(os.environ, {DEMO_ENV_VAR: "1"}, clear=False):
            self.assertTrue(resolve_demo_mode(False))

        with patch.dict(os.environ, {}, clear=True):
            self.assertTrue(resolve_demo_mode(True))
            self.assertFalse(resolve_demo_mode(False))

        with patch.dict(os.environ, {DEMO_ENV_VAR: "nao"}, clear=True):
            self.assertFalse(resolve_demo_mode(False))

    def test_resolve_output_targets(self) -> None:
        demo = resolve_output_targets(True)
        self.assertEqual(demo["outputs_txt_pasta"], "outputs_demo")
        self.assertEqual(demo["outputs_pdf_pasta"], "outputs_demo_pdfs")
        self.assertEqual(demo["paginas_pasta"], "paginas_demo")

        normal = resolve_output_targets(False)
        self.assertEqual(normal["outputs_txt_pasta"], "outputs")
        self.assertEqual(normal["outputs_pdf_pasta"], "outputs_pdfs")
        self.assertEqual(normal["paginas_pasta"], "paginas")

    def test_resolve_ruleset_id_prioridade(self) -> None:
        with patch.dict(os.environ, {RULESET_ENV_VAR: "RULESET_ENV"}, clear=True):
            self.assertEqual(resolve_ruleset_id("RULESET_CLI"), "RULESET_CLI")
            self.assertEqual(resolve_ruleset_id(None), "RULESET_ENV")
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(resolve_ruleset_id("  "), DEFAULT_RULESET_ID)

    def test_resolve_log_level(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(resolve_log_level(), logging.WARNING)
            self.assertEqual(resolve_log_level("debug"), logging.DEBUG)
            self.assertEqual(resolve_log_level("nivel_inexistente"), logging.WARNING)
        with patch.dict(os.environ, {LOG_LEVEL_ENV_VAR: "INFO"}, clear=True):
            self.assertEqual(resolve_log_level(), logging.INFO)


if __name__ == "__main__":
    unittest.main()
