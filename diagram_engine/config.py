"""
config.py — Environment configuration for the layout engine.

Settings are read from environment variables, with an optional .env file
in the working directory loaded first. get_settings() caches the result;
call get_settings.cache_clear() after changing the environment.
"""

import os
from functools import lru_cache
from pathlib import Path

from diagram_engine.model.schema import FixedLeafDimensions, LayoutSettings, Margins
from diagram_engine.model.units import (
    DEFAULT_LABEL_MARGIN,
    DEFAULT_LEAF_SIZE,
    DEFAULT_MARGIN,
    GRID_SIZE,
)


# Load .env file if it exists
def _load_dotenv(env_path: Path = Path(".env")) -> None:
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()
                    if key and value and key not in os.environ:
                        os.environ[key] = value


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


class Settings:
    """Engine settings loaded from environment variables."""

    def __init__(self):
        _load_dotenv()

        # Canvas
        self.grid_size: int = int(os.environ.get("DIAGRAM_GRID_SIZE", str(GRID_SIZE)))

        # Margins
        self.margin: int = int(os.environ.get("DIAGRAM_MARGIN", str(DEFAULT_MARGIN)))
        self.label_margin: int = int(os.environ.get("DIAGRAM_LABEL_MARGIN", str(DEFAULT_LABEL_MARGIN)))

        # Packing
        self.packing_algorithm: str = os.environ.get("DIAGRAM_PACKING_ALGORITHM", "grid")

        # Fixed leaf dimensions
        self.leaf_fixed_width: bool = _env_flag("DIAGRAM_LEAF_FIXED_WIDTH")
        self.leaf_fixed_height: bool = _env_flag("DIAGRAM_LEAF_FIXED_HEIGHT")
        self.leaf_width: int = int(os.environ.get("DIAGRAM_LEAF_WIDTH", str(DEFAULT_LEAF_SIZE[0])))
        self.leaf_height: int = int(os.environ.get("DIAGRAM_LEAF_HEIGHT", str(DEFAULT_LEAF_SIZE[1])))

    def layout_settings(self) -> LayoutSettings:
        """Validated engine settings. Raises pydantic's ValidationError on bad values."""
        return LayoutSettings(
            algorithm=self.packing_algorithm.lower(),
            margins=Margins(margin=self.margin, label_margin=self.label_margin),
            fixed_leaf_dimensions=FixedLeafDimensions(
                enforce_width=self.leaf_fixed_width,
                enforce_height=self.leaf_fixed_height,
                width=self.leaf_width,
                height=self.leaf_height,
            ),
            grid_size=self.grid_size,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
