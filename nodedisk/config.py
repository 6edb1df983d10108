"""Configuration of probes and filters for the disk manager daemon."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

DEFAULT_CONFIG_FILE_PATH = "/host/node-disk-manager.config"


@dataclass
class NDMOptions:
    """Options with which the daemon is run."""

    config_file_path: str = DEFAULT_CONFIG_FILE_PATH
    feature_gate: List[str] = field(default_factory=list)


@dataclass
class ProbeConfig:
    """Settings of one probe."""

    key: str = ""
    name: str = ""
    state: str = ""


@dataclass
class FilterConfig:
    """Settings of one filter; include and exclude are comma separated."""

    key: str = ""
    name: str = ""
    state: str = ""
    include: str = ""
    exclude: str = ""


@dataclass
class NodeDiskManagerConfig:
    """Settings of all probes and filters."""

    probe_configs: List[ProbeConfig] = field(default_factory=list)
    filter_configs: List[FilterConfig] = field(default_factory=list)


_PROBE_FIELDS = ("key", "name", "state")
_FILTER_FIELDS = ("key", "name", "state", "include", "exclude")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _strict_string(value: Any, where: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{where}: expected a string, got {type(value).__name__}")
    return value


def _loose_string(value: Any, where: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        raise ValueError(f"{where}: expected a scalar, got {type(value).__name__}")
    return str(value)


def _lookup(mapping: Dict[Any, Any], key: str) -> Any:
    """Find a key case-insensitively; an exact match wins."""
    if key in mapping:
        return mapping[key]
    for candidate, value in mapping.items():
        if isinstance(candidate, str) and candidate.lower() == key:
            return value
    return None


def _decode_list(
    raw: Any,
    where: str,
    fields: tuple,
    factory: Callable[..., Any],
    to_string: Callable[[Any, str], str],
) -> List[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"{where}: expected a list, got {type(raw).__name__}")
    items = []
    for position, entry in enumerate(raw):
        if entry is None:
            items.append(factory())
            continue
        if not isinstance(entry, dict):
            raise ValueError(f"{where}[{position}]: expected a mapping")
        values = {
            name: to_string(_lookup(entry, name), f"{where}[{position}].{name}")
            for name in fields
        }
        items.append(factory(**values))
    return items


def _decode(document: Any, to_string: Callable[[Any, str], str]) -> NodeDiskManagerConfig:
    if document is None:
        return NodeDiskManagerConfig()
    if not isinstance(document, dict):
        raise ValueError("configuration must be a mapping")
    return NodeDiskManagerConfig(
        probe_configs=_decode_list(
            _lookup(document, "probeconfigs"), "probeconfigs",
            _PROBE_FIELDS, ProbeConfig, to_string,
        ),
        filter_configs=_decode_list(
            _lookup(document, "filterconfigs"), "filterconfigs",
            _FILTER_FIELDS, FilterConfig, to_string,
        ),
    )


def parse_ndm_config(data: Union[bytes, str]) -> NodeDiskManagerConfig:
    """Parse configuration given as JSON or, failing that, YAML.

    Raises ValueError when the content is not a valid configuration.
    """
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    try:
        document = json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        pass
    else:
        return _decode(document, _strict_string)

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid configuration: {exc}") from exc
    return _decode(document, _loose_string)


def load_ndm_config(path: Union[str, Path]) -> NodeDiskManagerConfig:
    """Read and parse the configuration file at path.

    Raises OSError when the file cannot be read and ValueError when it
    does not hold a valid configuration.
    """
    return parse_ndm_config(Path(path).read_bytes())


def try_load_ndm_config(path: Union[str, Path]) -> Optional[NodeDiskManagerConfig]:
    """Like load_ndm_config, but give None when the file is unusable."""
    try:
        return load_ndm_config(path)
    except (OSError, ValueError):
        return None