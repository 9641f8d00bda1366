from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Undo stack depth; oldest snapshots are dropped beyond this
    history_capacity: int = 20
    default_overs: int = 20

    db_path: str = "data/scorebook.db"

    # Spectator stream re-reads storage at most this often
    live_refresh_seconds: float = 2.0

    openai_api_key: str = ""
    summary_model: str = "gpt-4.1"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
