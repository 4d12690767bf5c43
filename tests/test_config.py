from fabric_studio.config import DEFAULT_MODEL_NAME, AppConfig


def test_defaults_without_environment():
    config = AppConfig.from_env({})
    assert config.api_key is None
    assert config.model_name == DEFAULT_MODEL_NAME
    assert config.log_level == "INFO"
    assert config.appearance_mode == "system"


def test_first_non_empty_key_wins():
    config = AppConfig.from_env({"GEMINI_API_KEY": "", "GOOGLE_API_KEY": "g-key", "API_KEY": "plain"})
    assert config.api_key == "g-key"


def test_overrides():
    config = AppConfig.from_env(
        {
            "API_KEY": "k",
            "FABRIC_STUDIO_MODEL": "gemini-custom",
            "FABRIC_STUDIO_LOG_LEVEL": "debug",
            "FABRIC_STUDIO_APPEARANCE": "dark",
        }
    )
    assert config.model_name == "gemini-custom"
    assert config.log_level == "DEBUG"
    assert config.appearance_mode == "dark"
