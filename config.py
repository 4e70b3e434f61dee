"""
Typed configuration for the srcalc command line tool.

The file is optional. Lookup order, first existing wins:
  1) $SRCALC_CONFIG_PATH
  2) ./srcalc_config.json
  3) <user config dir>/srcalc/config.json

Example srcalc_config.json
{
  "mods": "HD",
  "speed_change": null,
  "output_format": "table",
  "log_level": "WARNING"
}

Command line flags override whatever the file sets.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator

from mods import ModError, parse_acronyms

logger = logging.getLogger(__name__)


class SrcalcConfig(BaseModel):
    mods: str = Field(default="", description="Mod acronyms applied when none are given, e.g. HDDT.")
    speed_change: Optional[float] = Field(default=None, gt=0, description="Custom rate for DT/NC/HT/DC.")
    output_format: str = Field(default="table", description="table, csv or json")
    log_level: str = Field(default="WARNING", description="Python logging level name.")

    @field_validator("mods")
    @classmethod
    def validate_mods(cls, value: str) -> str:
        try:
            parse_acronyms(value)
        except ModError as exception:
            raise ValueError(str(exception)) from exception
        return value.strip().upper()

    @field_validator("output_format")
    @classmethod
    def validate_output_format(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        if normalized not in {"table", "csv", "json"}:
            raise ValueError("output_format must be one of: table, csv, json")
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = (value or "").strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return normalized


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("srcalc"))
    return [
        Path.cwd() / "srcalc_config.json",
        config_directory / "config.json",
    ]


def resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("SRCALC_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path
    return None


def load_config(config_path: Optional[Path] = None) -> SrcalcConfig:
    config_path = config_path or resolve_config_path()
    if config_path is None:
        return SrcalcConfig()

    try:
        parsed = json.loads(Path(config_path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    try:
        config = SrcalcConfig.model_validate(parsed)
    except ValidationError as exception:
        raise ValueError(f"Invalid config file {config_path}:\n{exception}") from exception

    logger.debug("loaded config from %s", config_path)
    return config
