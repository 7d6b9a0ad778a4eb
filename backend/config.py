from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///./blood_test_analyzer.db"
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    allowed_origins: str = "http://localhost:3000"
    max_upload_size_mb: int = 20
    persist_history: bool = True

    # "substring" keeps the containment heuristic; "token_set" uses rapidfuzz scoring.
    name_matcher: str = "substring"
    name_match_threshold: int = 90
    min_biomarker_value: float = 0
    max_biomarker_value: float = 100000


settings = Settings()
