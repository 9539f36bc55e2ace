import json
import os
import shutil
import unittest
from pathlib import Path
from unittest.mock import patch
from uuid import uuid4

from lm_session.app_config import load_json_config, parse_app_config, resolve_runtime_env

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class AppConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        app = parse_app_config({})

        self.assertEqual("anthropic", app.provider_name)
        self.assertEqual("claude-sonnet-4-5-20250929", app.model)
        self.assertEqual(4096, app.max_tokens)
        self.assertEqual(200_000, app.context_window_tokens)
        self.assertIsNone(app.system_prompt)
        self.assertEqual("INFO", app.log_level)
        self.assertIsNone(app.log_consumers)

    def test_openai_gets_its_own_default_model(self) -> None:
        app = parse_app_config({"Provider": " OpenAI "})

        self.assertEqual("openai", app.provider_name)
        self.assertEqual("gpt-4o", app.model)

    def test_explicit_values(self) -> None:
        app = parse_app_config({
            "Model": "m",
            "MaxTokens": "512",
            "Temperature": "0.3",
            "ContextWindowTokens": 8000,
            "SystemPrompt": "Be brief.",
            "LogLevel": "DEBUG",
            "LogConsumers": [{"type": "console"}],
        })

        self.assertEqual("m", app.model)
        self.assertEqual(512, app.max_tokens)
        self.assertAlmostEqual(0.3, app.temperature)
        self.assertEqual(8000, app.context_window_tokens)
        self.assertEqual("Be brief.", app.system_prompt)
        self.assertEqual([{"type": "console"}], app.log_consumers)

    def test_resolve_runtime_env_picks_provider_key(self) -> None:
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-o", "ANTHROPIC_API_KEY": "sk-a"}):
            self.assertEqual("sk-o", resolve_runtime_env("openai").provider_api_key)
            env = resolve_runtime_env("anthropic")

        self.assertEqual("sk-a", env.provider_api_key)
        self.assertEqual("ANTHROPIC_API_KEY", env.provider_env_var)

    def test_load_json_config(self) -> None:
        tmp_dir = PROJECT_ROOT / ".test-artifacts" / f"config-{uuid4().hex}"
        tmp_dir.mkdir(parents=True, exist_ok=True)
        try:
            path = tmp_dir / "config.json"
            path.write_text(json.dumps({"Provider": "openai"}))

            self.assertEqual({"Provider": "openai"}, load_json_config(path))
            self.assertEqual({}, load_json_config(tmp_dir / "missing.json"))
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)


if __name__ == "__main__":
    unittest.main()
