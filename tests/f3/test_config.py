"""Tests for application configuration."""

from unittest.mock import patch

from mathtutor.config.app_config import (
    AppConfig,
    ChatSettings,
    ProgressSettings,
    load_app_config,
)


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_defaults_when_missing(self, tmp_path):
        config = load_app_config(tmp_path / "missing.yaml", force_reload=True)

        assert isinstance(config, AppConfig)
        assert config.chat.model == "glm-4-flash"
        assert config.chat.temperature == 0.7
        assert config.chat.max_tokens == 1024
        assert config.chat.api_key_env == "ZHIPU_API_KEY"
        assert config.progress.storage_key == "math-progress"
        assert config.progress.total_nodes == 86
        assert config.paths["state_db"] == "state/progress.db"

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "app_config_v1.yaml"
        path.write_text(
            """
chat:
  model: glm-4-air
  api_key_env: MY_KEY
  prompt_modes:
    exam_review: 你是一位考试复盘老师。
progress:
  total_nodes: 120
paths:
  knowledge_file: graph/nodes.json
""",
            encoding="utf-8",
        )

        config = load_app_config(path, force_reload=True)

        assert config.chat.model == "glm-4-air"
        assert config.chat.base_url == "https://open.bigmodel.cn/api/paas/v4"
        assert config.chat.prompt_modes == {"exam_review": "你是一位考试复盘老师。"}
        assert config.progress.total_nodes == 120
        assert config.progress.storage_key == "math-progress"
        assert config.paths["knowledge_file"] == "graph/nodes.json"
        assert config.paths["state_db"] == "state/progress.db"

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "app_config_v1.yaml"
        path.write_text("", encoding="utf-8")

        config = load_app_config(path, force_reload=True)

        assert config.chat == ChatSettings()
        assert config.progress == ProgressSettings()

    def test_cached(self, tmp_path):
        first = load_app_config(tmp_path / "missing.yaml", force_reload=True)
        assert load_app_config() is first


class TestChatSettings:
    """Tests for credential lookup."""

    def test_api_key_from_env(self):
        with patch.dict("os.environ", {"ZHIPU_API_KEY": "abc"}):
            assert ChatSettings().get_api_key() == "abc"

    def test_api_key_missing(self):
        with patch.dict("os.environ", {}, clear=True):
            assert ChatSettings().get_api_key() is None

    def test_no_env_var_configured(self):
        assert ChatSettings(api_key_env=None).get_api_key() is None
