"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "fraudguard"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    host: str = "0.0.0.0"
    port: int = 8082

    # Directory holding persisted risk models
    storage_dir: str = "models"

    # Alerts go to Kafka when a bootstrap server is configured, otherwise to the log
    kafka_bootstrap_servers: str | None = None
    kafka_alert_topic: str = "fraudguard.fraud.alerts"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
