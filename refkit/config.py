"""
Runtime configuration.

Values come from constructor arguments, or from environment variables via
``RefkitConfig.from_env()``. A ``.env`` file in the working directory is
loaded first when present.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .parser import DEFAULT_NAME_SEPARATOR

EXPORT_FORMATS = ("csv", "json", "excel")
TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class RefkitConfig:
    input_dir: str = "./input"
    output_dir: str = "./output"
    name_separator: str = DEFAULT_NAME_SEPARATOR
    export_format: str = "csv"
    fill_listings: bool = False

    def __post_init__(self):
        self.export_format = self.export_format.lower()
        if self.export_format not in EXPORT_FORMATS:
            raise ValueError(
                f"Unsupported export format: {self.export_format}. "
                f"Supported formats: {', '.join(EXPORT_FORMATS)}"
            )

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "RefkitConfig":
        """Build a config from REFKIT_* environment variables.

        Args:
            env_file: Explicit .env path (default: ./.env if it exists)
        """
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        defaults = cls()
        return cls(
            input_dir=os.getenv("REFKIT_INPUT_DIR", defaults.input_dir),
            output_dir=os.getenv("REFKIT_OUTPUT_DIR", defaults.output_dir),
            name_separator=os.getenv("REFKIT_NAME_SEPARATOR", defaults.name_separator),
            export_format=os.getenv("REFKIT_EXPORT_FORMAT", defaults.export_format),
            fill_listings=os.getenv("REFKIT_FILL_LISTINGS", "").strip().lower() in TRUE_VALUES,
        )
