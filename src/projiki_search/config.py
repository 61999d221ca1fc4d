"""Configuration module for projiki-search.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name} value '{raw}': {e}") from e


@dataclass
class Config:
    """Application configuration."""

    root: Path
    port: int
    stale_after: int
    refresh_interval: int
    history_limit: int
    history_file: Path

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        default_root = str(Path.home() / "Documents" / "Projiki")
        root = Path(os.getenv("PROJIKI_ROOT", default_root)).expanduser()

        port = _int_env("PROJIKI_PORT", "8080")
        if not 1 <= port <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {port}")

        # Seconds after which a query triggers a full rebuild first
        stale_after = _int_env("PROJIKI_STALE_AFTER", "30")
        if stale_after <= 0:
            raise ValueError(f"Stale threshold must be positive, got {stale_after}")

        # 0 disables the background refresher
        refresh_interval = _int_env("PROJIKI_REFRESH_INTERVAL", "0")
        if refresh_interval < 0:
            raise ValueError(f"Refresh interval must be >= 0, got {refresh_interval}")

        history_limit = _int_env("PROJIKI_HISTORY_LIMIT", "20")
        if history_limit <= 0:
            raise ValueError(f"History limit must be positive, got {history_limit}")

        default_history = str(root / "search-history.json")
        history_file = Path(os.getenv("PROJIKI_HISTORY_FILE", default_history)).expanduser()

        return cls(
            root=root,
            port=port,
            stale_after=stale_after,
            refresh_interval=refresh_interval,
            history_limit=history_limit,
            history_file=history_file,
        )


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
