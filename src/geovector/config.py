# src/geovector/config.py

"""
Configuration objects for decoding and runtime settings.

Runtime settings come from environment variables, optionally seeded from a
.env file found by python-dotenv.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv, find_dotenv

log = logging.getLogger(__name__)

__all__ = [
    "ParserMode",
    "DecodeConfig",
    "Settings",
    "load_settings"
]

class ParserMode(Enum):
    """
    Selects the GeoJSON parser path.

    Modes:
        FAST: Typed streaming decode through msgspec. Low allocation.
        COMPATIBLE: Generic tree decode through the json module, the same
            walker used for already parsed dictionaries.
    """
    FAST = "fast"
    COMPATIBLE = "compatible"

@dataclass
class DecodeConfig:
    """
    Options for GeoJSON decoding.

    Args:
        mode: Parser path to use for bytes/str input. Dict input always
            goes through the tree walker.
        skip_null_geometry: Features whose geometry is null are dropped when
            True. When False they make the decode fail.
    """
    mode: Union[ParserMode, str] = ParserMode.FAST
    skip_null_geometry: bool = True

    def __post_init__(self):
        if not isinstance(self.mode, ParserMode):
            try:
                self.mode = ParserMode(self.mode)
            except ValueError:
                valid_modes = [m.value for m in ParserMode]
                raise ValueError(f"Invalid parser mode '{self.mode}'. Must be one of: {valid_modes}")

@dataclass(frozen=True)
class Settings:
    parser_mode: ParserMode = ParserMode.FAST
    cache_dir: Optional[Path] = None
    log_level: str = "INFO"

    def decode_config(self) -> DecodeConfig:
        return DecodeConfig(mode=self.parser_mode)

def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Builds Settings from GEOVECTOR_* environment variables.

    Args:
        env_file: Explicit .env file to load. When None the nearest .env
            found from the working directory is used, if any.

    Returns:
        Settings: Resolved settings. Unknown parser modes fall back to fast.
    """
    env_path = str(env_file) if env_file else find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=False)
        log.debug(f"Loaded environment from {env_path}")

    raw_mode = os.getenv("GEOVECTOR_PARSER_MODE", ParserMode.FAST.value).lower()
    try:
        mode = ParserMode(raw_mode)
    except ValueError:
        log.warning(f"Unknown GEOVECTOR_PARSER_MODE '{raw_mode}', using '{ParserMode.FAST.value}'")
        mode = ParserMode.FAST

    cache_dir = os.getenv("GEOVECTOR_CACHE_DIR")

    return Settings(
        parser_mode=mode,
        cache_dir=Path(cache_dir) if cache_dir else None,
        log_level=os.getenv("GEOVECTOR_LOG_LEVEL", "INFO").upper()
    )
