"""
Configuration - Settings read from the environment (and a .env file).
"""

import logging
import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env from the working directory
load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the server and CLI."""
    store: str = "pocketbase"  # pocketbase, memory
    pocketbase_url: str = "https://mind-map.pockethost.io/"
    collection: str = "mindmaps"
    request_timeout: float = 30.0
    default_name: str = "My Mind Map"
    host: str = "127.0.0.1"
    port: int = 8765
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: [
        "http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173",
    ])
    api_base: str = "http://127.0.0.1:8765/api"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        host = os.getenv("MINDMAP_HOST", defaults.host)
        port = int(os.getenv("MINDMAP_PORT", str(defaults.port)))
        origins = os.getenv("MINDMAP_CORS_ORIGINS")
        return cls(
            store=os.getenv("MINDMAP_STORE", defaults.store).lower(),
            pocketbase_url=os.getenv("MINDMAP_POCKETBASE_URL", defaults.pocketbase_url),
            collection=os.getenv("MINDMAP_COLLECTION", defaults.collection),
            request_timeout=float(os.getenv("MINDMAP_REQUEST_TIMEOUT", str(defaults.request_timeout))),
            default_name=os.getenv("MINDMAP_DEFAULT_NAME", defaults.default_name),
            host=host,
            port=port,
            log_level=os.getenv("MINDMAP_LOG_LEVEL", defaults.log_level).upper(),
            cors_origins=_split(origins) if origins is not None else defaults.cors_origins,
            api_base=os.getenv("MINDMAP_API_BASE", f"http://{host}:{port}/api"),
        )


def get_settings() -> Settings:
    """Settings for the current process environment."""
    return Settings.from_env()


def configure_logging(level: str = "INFO"):
    """Configure root logging once for the server or CLI."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
