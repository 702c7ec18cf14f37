"""Configuration manager for refgraph using TOML files.

The config file lives at ``$REFGRAPH_HOME/config.toml`` and may hold two
tables::

    [neighborhood]
    target_node_id = 1315204
    outgoing_count = 3
    incoming_count = 3
    filter_count = 20        # set to -1 to disable degree pruning
    policy = "shortest"
    out_file = "graph.dot"

    [prune]
    exclude_paths = ["World/"]
    exclude_ids = [472400]

Missing keys fall back to the defaults in :mod:`refgraph_cli.config`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import toml

from . import config
from .errors import ConfigError
from .neighborhood import TraversalPolicy


@dataclass
class NeighborhoodSettings:
    target_node_id: int = config.DEFAULT_TARGET_ID
    outgoing_count: int = config.DEFAULT_OUTGOING_DEPTH
    incoming_count: int = config.DEFAULT_INCOMING_DEPTH
    filter_count: Optional[int] = config.DEFAULT_DEGREE_THRESHOLD
    policy: str = config.DEFAULT_POLICY
    out_file: str = config.DEFAULT_OUT_FILE


@dataclass
class PruneSettings:
    exclude_paths: List[str] = field(default_factory=lambda: list(config.DEFAULT_EXCLUDED_PATH_MARKERS))
    exclude_ids: List[int] = field(default_factory=lambda: list(config.DEFAULT_EXCLUDED_IDS))


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all tables), or {} if there is none."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        raise ConfigError(f"Cannot read {config.CONFIG_FILE}: {exc}") from exc


def _save_full_config(payload: Dict[str, Any]) -> None:
    config.ensure_base_dirs()
    try:
        with open(config.CONFIG_FILE, "w", encoding="utf-8") as f:
            toml.dump(payload, f)
    except OSError as exc:
        raise ConfigError(f"Cannot write {config.CONFIG_FILE}: {exc}") from exc


def _expect_int(table: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"[{table}] {key} must be an integer, got {value!r}")
    return value


def _expect_str(table: str, key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"[{table}] {key} must be a string, got {value!r}")
    return value


def load_neighborhood_config() -> NeighborhoodSettings:
    """Return neighborhood defaults overlaid with the ``[neighborhood]`` table."""
    section = load_full_config().get("neighborhood", {})
    settings = NeighborhoodSettings()

    for key in ("target_node_id", "outgoing_count", "incoming_count"):
        if key in section:
            value = _expect_int("neighborhood", key, section[key])
            if value < 0:
                raise ConfigError(f"[neighborhood] {key} must be >= 0, got {value}")
            setattr(settings, key, value)

    if "filter_count" in section:
        value = _expect_int("neighborhood", "filter_count", section["filter_count"])
        settings.filter_count = None if value < 0 else value

    if "policy" in section:
        policy = _expect_str("neighborhood", "policy", section["policy"]).lower()
        choices = [p.value for p in TraversalPolicy]
        if policy not in choices:
            raise ConfigError(
                f"[neighborhood] policy must be one of {', '.join(choices)}, got {section['policy']!r}"
            )
        settings.policy = policy

    if "out_file" in section:
        settings.out_file = _expect_str("neighborhood", "out_file", section["out_file"])

    return settings


def load_prune_config() -> PruneSettings:
    """Return prune defaults overlaid with the ``[prune]`` table."""
    section = load_full_config().get("prune", {})
    settings = PruneSettings()

    if "exclude_paths" in section:
        paths = section["exclude_paths"]
        if not isinstance(paths, list):
            raise ConfigError("[prune] exclude_paths must be a list of strings")
        settings.exclude_paths = [_expect_str("prune", "exclude_paths", p) for p in paths]

    if "exclude_ids" in section:
        ids = section["exclude_ids"]
        if not isinstance(ids, list):
            raise ConfigError("[prune] exclude_ids must be a list of integers")
        settings.exclude_ids = [_expect_int("prune", "exclude_ids", i) for i in ids]

    return settings


def save_neighborhood_config(settings: NeighborhoodSettings) -> None:
    """Write the ``[neighborhood]`` table, preserving other tables."""
    payload = load_full_config()
    section = asdict(settings)
    if section["filter_count"] is None:
        section["filter_count"] = -1
    payload["neighborhood"] = section
    _save_full_config(payload)
