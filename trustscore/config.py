from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    port: int = 8081
    log_level: str = "info"
    environment: str = "development"
    cors_origins: str = "*"
    service_name: str = "trustscore"

    model_config = {"env_file": ".env"}


settings = Settings()
