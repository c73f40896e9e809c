"""Project configuration: the bean directory, ID settings and the fixed status, type and priority sets."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

CONFIG_FILE_NAME = ".beans.yml"
DEFAULT_BEANS_PATH = ".beans"
LEGACY_CONFIG_FILE = "config.yaml"

DEFAULT_ID_LENGTH = 4
_FALLBACK_STATUS = "todo"


@dataclass(frozen=True)
class StatusConfig:
    """A bean status with its display colour."""

    name: str
    color: str
    archive: bool = False
    description: str = ""


@dataclass(frozen=True)
class TypeConfig:
    """A bean type with its display colour."""

    name: str
    color: str
    description: str = ""


@dataclass(frozen=True)
class PriorityConfig:
    """A priority level with its display colour."""

    name: str
    color: str
    description: str = ""


# Order sets sort priority: active work first, archived states last.
DEFAULT_STATUSES: tuple[StatusConfig, ...] = (
    StatusConfig("in-progress", "yellow", description="Currently being worked on"),
    StatusConfig("todo", "green", description="Ready to be worked on"),
    StatusConfig("draft", "blue", description="Needs refinement before it can be worked on"),
    StatusConfig("completed", "gray", archive=True, description="Finished successfully"),
    StatusConfig("scrapped", "gray", archive=True, description="Will not be done"),
)

DEFAULT_TYPES: tuple[TypeConfig, ...] = (
    TypeConfig(
        "milestone",
        "cyan",
        "A target release or checkpoint; group work that should ship together",
    ),
    TypeConfig(
        "epic",
        "purple",
        "A thematic container for related work; should have child beans, not be worked on directly",
    ),
    TypeConfig("bug", "red", "Something that is broken and needs fixing"),
    TypeConfig("feature", "green", "A user-facing capability or enhancement"),
    TypeConfig(
        "task",
        "blue",
        "A concrete piece of work to complete (eg. a chore, or a sub-task for a feature)",
    ),
)

# Ordered from highest to lowest urgency.
DEFAULT_PRIORITIES: tuple[PriorityConfig, ...] = (
    PriorityConfig("critical", "red", "Urgent, blocking work. When possible, address immediately"),
    PriorityConfig("high", "yellow", "Important, should be done before normal work"),
    PriorityConfig("normal", "white", "Standard priority"),
    PriorityConfig("low", "gray", "Less important, can be delayed"),
    PriorityConfig("deferred", "gray", "Explicitly pushed back, avoid doing unless necessary"),
)

_STATUSES_BY_NAME = {s.name: s for s in DEFAULT_STATUSES}
_TYPES_BY_NAME = {t.name: t for t in DEFAULT_TYPES}
_PRIORITIES_BY_NAME = {p.name: p for p in DEFAULT_PRIORITIES}


@dataclass
class BeansConfig:
    """Settings for bean storage and creation."""

    path: str = ""
    prefix: str = ""
    id_length: int = 0
    default_status: str = ""
    default_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.path:
            data["path"] = self.path
        data["prefix"] = self.prefix
        data["id_length"] = self.id_length
        if self.default_status:
            data["default_status"] = self.default_status
        if self.default_type:
            data["default_type"] = self.default_type
        return data


@dataclass(frozen=True)
class BeanColors:
    """Resolved colours for rendering a bean."""

    status_color: str = "gray"
    type_color: str = ""
    priority_color: str = ""
    is_archive: bool = False


@dataclass
class Config:
    """Beans configuration; ``config_dir`` anchors relative paths and is not saved."""

    beans: BeansConfig = field(default_factory=BeansConfig)
    config_dir: str = ""

    def resolve_beans_path(self) -> str:
        """Return the absolute path to the beans directory."""
        if os.path.isabs(self.beans.path):
            return self.beans.path
        base = self.config_dir or os.getcwd()
        return os.path.join(base, self.beans.path)

    def save(self, directory: str) -> None:
        """Write the configuration to ``.beans.yml`` in config_dir, or in ``directory`` if unset."""
        target_dir = self.config_dir or directory
        path = os.path.join(target_dir, CONFIG_FILE_NAME)
        text = yaml.safe_dump(
            {"beans": self.beans.to_dict()},
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(text)

    def is_valid_status(self, status: str) -> bool:
        return status in _STATUSES_BY_NAME

    def status_list(self) -> str:
        return ", ".join(self.status_names())

    def status_names(self) -> list[str]:
        return [s.name for s in DEFAULT_STATUSES]

    def get_status(self, name: str) -> Optional[StatusConfig]:
        return _STATUSES_BY_NAME.get(name)

    def get_default_status(self) -> str:
        return self.beans.default_status or _FALLBACK_STATUS

    def get_default_type(self) -> str:
        return self.beans.default_type

    def is_archive_status(self, name: str) -> bool:
        status = self.get_status(name)
        return status.archive if status is not None else False

    def get_type(self, name: str) -> Optional[TypeConfig]:
        return _TYPES_BY_NAME.get(name)

    def type_names(self) -> list[str]:
        return [t.name for t in DEFAULT_TYPES]

    def is_valid_type(self, type_name: str) -> bool:
        return type_name in _TYPES_BY_NAME

    def type_list(self) -> str:
        return ", ".join(self.type_names())

    def get_bean_colors(self, status: str, type_name: str, priority: str) -> BeanColors:
        """Resolve display colours for a bean's status, type and priority."""
        status_cfg = self.get_status(status)
        type_cfg = self.get_type(type_name)
        priority_cfg = self.get_priority(priority)
        return BeanColors(
            status_color=status_cfg.color if status_cfg else "gray",
            type_color=type_cfg.color if type_cfg else "",
            priority_color=priority_cfg.color if priority_cfg else "",
            is_archive=self.is_archive_status(status),
        )

    def get_priority(self, name: str) -> Optional[PriorityConfig]:
        return _PRIORITIES_BY_NAME.get(name)

    def priority_names(self) -> list[str]:
        return [p.name for p in DEFAULT_PRIORITIES]

    def is_valid_priority(self, priority: str) -> bool:
        """Return True for a known priority; the empty string means no priority and is valid."""
        return priority == "" or priority in _PRIORITIES_BY_NAME

    def priority_list(self) -> str:
        return ", ".join(self.priority_names())


def default() -> Config:
    """Return a configuration with default values."""
    return Config(
        beans=BeansConfig(
            path=DEFAULT_BEANS_PATH,
            prefix="",
            id_length=DEFAULT_ID_LENGTH,
            default_status=_FALLBACK_STATUS,
            default_type="task",
        )
    )


def default_with_prefix(prefix: str) -> Config:
    """Return a default configuration with the given ID prefix."""
    cfg = default()
    cfg.beans.prefix = prefix
    return cfg


def find_config(start_dir: str) -> Optional[str]:
    """Search upward from ``start_dir`` for ``.beans.yml``; return its path or None."""
    directory = os.path.abspath(start_dir)
    while True:
        candidate = os.path.join(directory, CONFIG_FILE_NAME)
        if os.path.exists(candidate):
            return candidate
        parent = os.path.dirname(directory)
        if parent == directory:
            return None
        directory = parent


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_int(value: Any, key: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"beans.{key} must be an integer, got {value!r}")
    return value


def _parse(data: Any) -> Config:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("configuration must be a mapping")
    section = data.get("beans") or {}
    if not isinstance(section, dict):
        raise ValueError("'beans' section must be a mapping")
    return Config(
        beans=BeansConfig(
            path=_as_str(section.get("path")),
            prefix=_as_str(section.get("prefix")),
            id_length=_as_int(section.get("id_length"), "id_length"),
            default_status=_as_str(section.get("default_status")),
            default_type=_as_str(section.get("default_type")),
        )
    )


def load(config_path: str) -> Config:
    """Read the configuration file; return defaults if it does not exist."""
    try:
        with open(config_path, encoding="utf-8") as fh:
            text = fh.read()
    except FileNotFoundError:
        return default()

    cfg = _parse(yaml.safe_load(text))
    cfg.config_dir = os.path.dirname(config_path)

    beans = cfg.beans
    if not beans.path:
        beans.path = DEFAULT_BEANS_PATH
    if beans.id_length == 0:
        beans.id_length = DEFAULT_ID_LENGTH
    if not beans.default_status:
        beans.default_status = _FALLBACK_STATUS
    if not beans.default_type:
        beans.default_type = DEFAULT_TYPES[0].name
    return cfg


def load_from_directory(start_dir: str) -> Config:
    """Find and load the nearest config file, or return defaults anchored at ``start_dir``."""
    config_path = find_config(start_dir)
    if config_path is None:
        cfg = default()
        cfg.config_dir = start_dir
        return cfg
    return load(config_path)