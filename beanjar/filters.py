"""Filtering of bean lists by status, type, priority, tags and relationships."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Sequence

from beanjar.links import LINK_BLOCKING
from beanjar.model import Bean

if TYPE_CHECKING:
    from beanjar.store import Core

_DEFAULT_PRIORITY = "normal"


@dataclass
class BeanFilter:
    """Criteria for selecting beans.

    Inclusion lists match any of their values; exclusion lists drop beans
    matching any of theirs. Flags left as None or False impose nothing.
    """

    status: list[str] = field(default_factory=list)
    exclude_status: list[str] = field(default_factory=list)
    type: list[str] = field(default_factory=list)
    exclude_type: list[str] = field(default_factory=list)
    priority: list[str] = field(default_factory=list)
    exclude_priority: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    exclude_tags: list[str] = field(default_factory=list)
    has_parent: Optional[bool] = None
    no_parent: Optional[bool] = None
    parent_id: Optional[str] = None
    has_blocking: Optional[bool] = None
    blocking_id: Optional[str] = None
    no_blocking: Optional[bool] = None
    is_blocked: Optional[bool] = None


def _effective_priority(bean: Bean) -> str:
    return bean.priority or _DEFAULT_PRIORITY


def _keep(beans: Iterable[Bean], predicate: Callable[[Bean], bool]) -> list[Bean]:
    return [bean for bean in beans if predicate(bean)]


def _include(beans: Iterable[Bean], values: Sequence[str], getter: Callable[[Bean], str]) -> list[Bean]:
    wanted = set(values)
    return _keep(beans, lambda b: getter(b) in wanted)


def _exclude(beans: Iterable[Bean], values: Sequence[str], getter: Callable[[Bean], str]) -> list[Bean]:
    unwanted = set(values)
    return _keep(beans, lambda b: getter(b) not in unwanted)


def _blocked_by_someone(bean: Bean, core: "Core") -> bool:
    return any(link.link_type == LINK_BLOCKING for link in core.find_incoming_links(bean.id))


def apply_filter(
    beans: Sequence[Bean], bean_filter: Optional[BeanFilter], core: Optional["Core"] = None
) -> Sequence[Bean]:
    """Return the beans matching ``bean_filter``, keeping their order.

    With no filter the input is returned unchanged. ``core`` is needed only
    when ``is_blocked`` is set, to look up incoming blocking links.
    """
    if bean_filter is None:
        return beans

    f = bean_filter
    result: Sequence[Bean] = beans

    if f.status:
        result = _include(result, f.status, lambda b: b.status)
    if f.exclude_status:
        result = _exclude(result, f.exclude_status, lambda b: b.status)

    if f.type:
        result = _include(result, f.type, lambda b: b.type)
    if f.exclude_type:
        result = _exclude(result, f.exclude_type, lambda b: b.type)

    if f.priority:
        result = _include(result, f.priority, _effective_priority)
    if f.exclude_priority:
        result = _exclude(result, f.exclude_priority, _effective_priority)

    if f.tags:
        wanted_tags = set(f.tags)
        result = _keep(result, lambda b: any(t in wanted_tags for t in b.tags))
    if f.exclude_tags:
        unwanted_tags = set(f.exclude_tags)
        result = _keep(result, lambda b: not any(t in unwanted_tags for t in b.tags))

    if f.has_parent:
        result = _keep(result, lambda b: bool(b.parent))
    if f.no_parent:
        result = _keep(result, lambda b: not b.parent)
    if f.parent_id:
        parent_id = f.parent_id
        result = _keep(result, lambda b: b.parent == parent_id)

    if f.has_blocking:
        result = _keep(result, lambda b: bool(b.blocking))
    if f.blocking_id:
        blocking_id = f.blocking_id
        result = _keep(result, lambda b: blocking_id in b.blocking)
    if f.no_blocking:
        result = _keep(result, lambda b: not b.blocking)

    if f.is_blocked is not None:
        if core is None:
            raise ValueError("filtering on is_blocked requires a bean store")
        want_blocked = f.is_blocked
        result = _keep(result, lambda b: _blocked_by_someone(b, core) == want_blocked)

    return result