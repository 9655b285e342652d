from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    service_name: str = "datadog-ops-service"

    datadog_api_key: str | None = None
    datadog_app_key: str | None = None
    datadog_site: str = "datadoghq.com"

    request_timeout_s: float = 60.0
    request_retries: int = 3
    max_logs_limit: int = 1000
    max_traces_limit: int = 1000

    log_level: str = "INFO"


settings = Settings()
