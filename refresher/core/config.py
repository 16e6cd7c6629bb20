"""
Pydantic Settings — centralized configuration loaded from environment variables.

Every field can be overridden with a ``REFRESHER_``-prefixed variable,
e.g. ``REFRESHER_SFTP_PASSWORD=secret``.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # ── Auto-discover ─────────────────────────
    AUTODISCOVER_TIMEOUT: float = 10.0
    AUTODISCOVER_PATH: str = "/autodiscover"

    # ── Console (SFTP) ────────────────────────
    SFTP_PORT: int = 22
    SFTP_USERNAME: str = "root"
    SFTP_PASSWORD: str = ""
    SFTP_TIMEOUT: float = 10.0
    SFTP_BASE_PATH: str = "/dev_hdd0"

    # ── Storage layout ────────────────────────
    # Relative to the emulator directory chosen by the user
    EMULATOR_HDD_DIRECTORY: str = "dev_hdd0"
    # Relative to the accessor root
    GAME_DIRECTORY: str = "game"
    PLUGINS_DIRECTORY: str = "plugins"

    # ── Patchwork ─────────────────────────────
    PATCHWORK_OVERRIDE_DIRECTORY: str = "."

    model_config = {"env_prefix": "REFRESHER_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
