from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "jpeg-crop-service"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"
    cors_origins: list[str] = ["*"]

    storage_dir: str = "./"
    max_upload_bytes: int = 1_000_000
    bearer_token: str = ""


settings = Settings()
