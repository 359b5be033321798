"""Typed action configuration.

Loaded once per run from (lowest to highest precedence) built-in defaults,
an optional YAML defaults file, ``INPUT_*``/``GITHUB_*`` environment
variables, and CLI overrides.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .markdown import DEFAULT_RESULTS_LIMIT, DEFAULT_TITLE

DEFAULT_SARIF_FILE = "scan_results.sarif"
DEFAULT_UPDATE_EXISTING = True

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}
_YAML_KEYS = {"title", "results_limit", "update_existing"}


class ConfigError(RuntimeError):
    """Invalid or missing configuration value."""


@dataclass(frozen=True)
class ActionConfig:
    """Data class for Action Config."""
    sarif_file: Path
    api_url: str
    repository: str
    event_path: Path
    token: str | None = None
    title: str = DEFAULT_TITLE
    results_limit: int = DEFAULT_RESULTS_LIMIT
    update_existing: bool = DEFAULT_UPDATE_EXISTING


def _require_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{ctx}: expected string")
    s = value.strip()
    if not s:
        raise ConfigError(f"{ctx}: must be non-empty")
    return s


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def parse_positive_int(value: Any, ctx: str) -> int:
    """Parse positive int."""
    if isinstance(value, bool):
        raise ConfigError(f"{ctx}: expected integer")
    if isinstance(value, str):
        try:
            value = int(value.strip(), 10)
        except ValueError:
            raise ConfigError(f"{ctx}: expected integer, got {value!r}") from None
    if not isinstance(value, int):
        raise ConfigError(f"{ctx}: expected integer")
    if value < 1:
        raise ConfigError(f"{ctx}: must be >= 1")
    return value


def parse_bool(value: Any, ctx: str) -> bool:
    """Parse bool."""
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{ctx}: expected boolean, got {value!r}")


def _require_repository(value: Any, ctx: str) -> str:
    repo = _require_str(value, ctx)
    owner, sep, name = repo.partition("/")
    if not (sep and owner and name) or "/" in name:
        raise ConfigError(f"{ctx}: expected owner/name, got {repo!r}")
    return repo


def load_defaults_file(path: Path) -> dict[str, Any]:
    """Load the optional YAML defaults file."""
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(f"missing config file: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected mapping")
    unknown = sorted(str(k) for k in raw if k not in _YAML_KEYS)
    if unknown:
        raise ConfigError(f"{path}: unknown keys: {', '.join(unknown)}")

    out: dict[str, Any] = {}
    if "title" in raw:
        out["title"] = _require_str(raw["title"], f"{path}: title")
    if "results_limit" in raw:
        out["results_limit"] = parse_positive_int(raw["results_limit"], f"{path}: results_limit")
    if "update_existing" in raw:
        value = raw["update_existing"]
        if not isinstance(value, bool):
            raise ConfigError(f"{path}: update_existing: expected boolean")
        out["update_existing"] = value
    return out


def load_config(
    environ: Mapping[str, str],
    overrides: Mapping[str, Any] | None = None,
) -> ActionConfig:
    """Build the run configuration.

    ``overrides`` holds CLI values; a ``None`` value means "not given".

    Raises:
        ConfigError: a value is missing or malformed.
    """
    cli = {k: v for k, v in (overrides or {}).items() if v is not None}

    def env(name: str) -> str | None:
        return _optional_str(environ.get(name))

    config_file = cli.get("config_file") or env("INPUT_CONFIG_FILE")
    file_values = load_defaults_file(Path(config_file)) if config_file else {}

    title = cli.get("title") or env("INPUT_TITLE") or file_values.get("title") or DEFAULT_TITLE

    limit_raw = cli.get("results_limit", env("INPUT_RESULTS_LIMIT"))
    if limit_raw is None:
        results_limit = file_values.get("results_limit", DEFAULT_RESULTS_LIMIT)
    else:
        results_limit = parse_positive_int(limit_raw, "results limit")

    update_raw = cli.get("update_existing", env("INPUT_UPDATE_EXISTING"))
    if update_raw is None:
        update_existing = file_values.get("update_existing", DEFAULT_UPDATE_EXISTING)
    else:
        update_existing = parse_bool(update_raw, "update existing")

    return ActionConfig(
        sarif_file=Path(cli.get("sarif_file") or env("INPUT_SARIF_FILE") or DEFAULT_SARIF_FILE),
        api_url=_require_str(env("GITHUB_API_URL") or "", "GITHUB_API_URL").rstrip("/"),
        repository=_require_repository(env("GITHUB_REPOSITORY") or "", "GITHUB_REPOSITORY"),
        event_path=Path(_require_str(env("GITHUB_EVENT_PATH") or "", "GITHUB_EVENT_PATH")),
        token=env("INPUT_TOKEN"),
        title=title,
        results_limit=results_limit,
        update_existing=update_existing,
    )
