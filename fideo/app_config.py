from pydantic import BaseModel

from fideo.shared.config import config

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def _split_origins(raw: str | None) -> list[str]:
    return [origin.strip() for origin in (raw or "").split(",") if origin.strip()]


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get_bool("DEBUG")

    # HTTP surface
    API_HOST: str = (config.get("API_HOST") or "").strip() or "127.0.0.1"
    API_PORT: int = int((config.get("API_PORT") or "").strip() or 8000)
    API_CORS_ORIGINS: list[str] = _split_origins(config.get("API_CORS_ORIGINS"))

    # Capture processes
    FFMPEG_PATH: str = (config.get("FFMPEG_PATH") or "").strip() or "ffmpeg"
    RECORDINGS_DIR: str = (config.get("RECORDINGS_DIR") or "").strip() or "recordings"
    # Container extension for captured files; ts survives abrupt termination
    RECORDING_FORMAT: str = (config.get("RECORDING_FORMAT") or "").strip() or "ts"

    # Seconds between two progress snapshots pushed to clients
    PROGRESS_INTERVAL_SECONDS: float = float(
        (config.get("PROGRESS_INTERVAL_SECONDS") or "").strip() or 1.0
    )

    # Live source resolver
    RESOLVER_TIMEOUT_SECONDS: float = float(
        (config.get("RESOLVER_TIMEOUT_SECONDS") or "").strip() or 15
    )
    RESOLVER_USER_AGENT: str = (config.get("RESOLVER_USER_AGENT") or "").strip() or DEFAULT_USER_AGENT

    # Observability
    LOGFIRE_ENABLE: bool = config.get_bool("LOGFIRE_ENABLE")
    LOGFIRE_TOKEN: str | None = (config.get("LOGFIRE_TOKEN") or "").strip() or None


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
