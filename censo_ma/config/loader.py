from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from dotenv import load_dotenv
from jsonschema.exceptions import ValidationError

from censo_ma.matching.matcher import MatchPolicy
from censo_ma.models.compatibility_report import DEFAULT_COVERAGE_THRESHOLD
from censo_ma.transport.fetcher import DEFAULT_TIMEOUT

"""Dashboard configuration loader.

Responsibilities:
- Load YAML config (config/dashboard.yml by convention)
- Validate against config_schema.json (unknown keys rejected)
- Apply defaults (sheet names, matching policy, fetch timeout)
- Apply environment overrides, with values from a .env file taking precedence:
    CENSO_MA_WORKBOOK, CENSO_MA_BOUNDARIES, CENSO_MA_FETCH_TIMEOUT
"""

__all__ = [
    "ConfigError",
    "DashboardConfig",
    "apply_env_overrides",
    "default_config",
    "load_config",
    "load_env_file",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

DEFAULT_WORKBOOK = "data/excel/dados_censo_escolar.xlsx"
DEFAULT_BOUNDARIES = "data/geojson/maranhao_municipios.geojson"
DEFAULT_AGGREGATES_SHEET = "Dados Gerais"
DEFAULT_SCHOOLS_SHEET = "Análise - Tabela da lista"

ENV_WORKBOOK = "CENSO_MA_WORKBOOK"
ENV_BOUNDARIES = "CENSO_MA_BOUNDARIES"
ENV_FETCH_TIMEOUT = "CENSO_MA_FETCH_TIMEOUT"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DashboardConfig:
    workbook: str = DEFAULT_WORKBOOK
    boundaries: str = DEFAULT_BOUNDARIES
    aggregates_sheet: str = DEFAULT_AGGREGATES_SHEET
    schools_sheet: str = DEFAULT_SCHOOLS_SHEET
    match_policy: MatchPolicy = field(default_factory=MatchPolicy)
    fetch_timeout: float = DEFAULT_TIMEOUT


def default_config() -> DashboardConfig:
    return DashboardConfig()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or config violating the schema
            (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_env_file(path: Path, override: bool = True) -> bool:
    """Load a .env file into the process environment; False when absent."""
    if not path.exists():
        return False
    return load_dotenv(dotenv_path=path, override=override)


def apply_env_overrides(cfg: DashboardConfig) -> DashboardConfig:
    changes: dict[str, Any] = {}
    if os.getenv(ENV_WORKBOOK):
        changes["workbook"] = os.environ[ENV_WORKBOOK]
    if os.getenv(ENV_BOUNDARIES):
        changes["boundaries"] = os.environ[ENV_BOUNDARIES]
    raw_timeout = os.getenv(ENV_FETCH_TIMEOUT)
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError as e:
            raise ConfigError(f"{ENV_FETCH_TIMEOUT} must be a number: {raw_timeout!r}") from e
        if timeout <= 0:
            raise ConfigError(f"{ENV_FETCH_TIMEOUT} must be positive: {raw_timeout!r}")
        changes["fetch_timeout"] = timeout
    return replace(cfg, **changes) if changes else cfg


def load_config(path: Path, env_file: Path | None = Path(".env")) -> DashboardConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    sheets = data.get("sheets", {})
    matching = data.get("matching", {})
    defaults = MatchPolicy()
    policy = MatchPolicy(
        code_fields=tuple(matching.get("code_fields", defaults.code_fields)),
        name_fields=tuple(matching.get("name_fields", defaults.name_fields)),
        name_mode=matching.get("name_mode", defaults.name_mode),
        coverage_threshold=float(matching.get("coverage_threshold", DEFAULT_COVERAGE_THRESHOLD)),
    )
    cfg = DashboardConfig(
        workbook=data["workbook"],
        boundaries=data["boundaries"],
        aggregates_sheet=sheets.get("aggregates", DEFAULT_AGGREGATES_SHEET),
        schools_sheet=sheets.get("schools", DEFAULT_SCHOOLS_SHEET),
        match_policy=policy,
        fetch_timeout=float(data.get("fetch", {}).get("timeout", DEFAULT_TIMEOUT)),
    )
    if env_file is not None:
        load_env_file(env_file)
    return apply_env_overrides(cfg)
