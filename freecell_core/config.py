from __future__ import annotations

import logging
import os
from dataclasses import dataclass


def _env_flag(name: str, default: str = '0') -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning('ignoring non-integer %s=%r', name, raw)
        return default


@dataclass(frozen=True)
class Settings:
    db_path: str
    auto_delay_ms: int
    log_level: str
    debug: bool
    port: int
    max_games: int = 1000
    game_idle_seconds: int = 3600

    @property
    def auto_delay_seconds(self) -> float:
        return max(0, self.auto_delay_ms) / 1000.0


def load_settings() -> Settings:
    """Reads FREECELL_* settings from the environment."""
    debug = _env_flag('FREECELL_DEBUG') or _env_flag('FLASK_DEBUG')
    level = 'DEBUG' if debug else os.getenv('FREECELL_LOG_LEVEL', 'INFO').upper()
    return Settings(
        db_path=os.getenv('FREECELL_DB', os.path.join('data', 'freecell.db')),
        auto_delay_ms=_env_int('FREECELL_AUTO_DELAY_MS', 300),
        log_level=level,
        debug=debug,
        port=_env_int('PORT', 5000),
        max_games=max(1, _env_int('FREECELL_MAX_GAMES', 1000)),
        game_idle_seconds=_env_int('FREECELL_GAME_IDLE_S', 3600),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
