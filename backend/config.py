import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


_BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))


class Settings(BaseSettings):
    bot_name: str = "brawlbot"
    language: str = "en"
    phrases_path: str = os.path.join(_BACKEND_DIR, "phrases.yml")
    # Seconds between outbound deliveries; some transports garble back-to-back sends
    queue_interval: float = 0.15
    # Seconds to wait before advertising a new game so the command message lands first
    advertise_delay: float = 0.5
    presenter: str = "plain"  # plain | irc | slack
    engine_factory: str = "agents.lobby_engine:LobbyEngine"
    max_text_length: int = 500
    # CORS origins — set ALLOWED_ORIGINS env var for production (JSON list)
    allowed_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )


settings = Settings()
