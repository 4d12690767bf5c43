"""Точка входа в приложение."""
from fabric_studio.app import FabricStudioApp
from fabric_studio.config import AppConfig
from fabric_studio.logging_config import configure_logging, log


def main() -> None:
    """Читает конфигурацию, создаёт и запускает главное окно приложения."""
    config = AppConfig.from_env()
    configure_logging(config.log_level)
    if not config.api_key:
        log.warning("No Gemini API key configured; generation will fail until one is set")
    app = FabricStudioApp(config)
    app.mainloop()


if __name__ == "__main__":
    main()
