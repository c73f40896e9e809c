"""Relationships between beans: incoming links, cycle detection and link validation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional, Sequence

from beanjar.model import Bean

LINK_PARENT = "parent"
LINK_BLOCKING = "blocking"
HIERARCHICAL_LINK_TYPES = (LINK_BLOCKING, LINK_PARENT)


@dataclass(frozen=True)
class IncomingLink:
    """A link from another bean to a target bean."""

    from_bean: Bean
    link_type: str


@dataclass(frozen=True)
class BrokenLink:
    """A link to a bean that does not exist."""

    bean_id: str
    link_type: str
    target: str


@dataclass(frozen=True)
class SelfLink:
    """A bean linking to itself."""

    bean_id: str
    link_type: str


@dataclass(frozen=True)
class Cycle:
    """A circular chain of links of one type; the path ends where it starts."""

    link_type: str
    path: list[str]


@dataclass
class LinkCheckResult:
    """All link problems found across a set of beans."""

    broken_links: list[BrokenLink] = field(default_factory=list)
    self_links: list[SelfLink] = field(default_factory=list)
    cycles: list[Cycle] = field(default_factory=list)

    def has_issues(self) -> bool:
        return bool(self.broken_links or self.self_links or self.cycles)

    def total_issues(self) -> int:
        return len(self.broken_links) + len(self.self_links) + len(self.cycles)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation."""
        return asdict(self)


def _targets(bean: Bean, link_type: str) -> list[str]:
    if link_type == LINK_PARENT:
        return [bean.parent] if bean.parent else []
    if link_type == LINK_BLOCKING:
        return list(bean.blocking)
    return []


def find_incoming_links(beans: Mapping[str, Bean], target_id: str) -> list[IncomingLink]:
    """Return every link from a bean in ``beans`` to ``target_id``."""
    result: list[IncomingLink] = []
    for bean in beans.values():
        if bean.parent == target_id:
            result.append(IncomingLink(bean, LINK_PARENT))
        result.extend(
            IncomingLink(bean, LINK_BLOCKING)
            for blocked in bean.blocking
            if blocked == target_id
        )
    return result


def detect_cycle(
    beans: Mapping[str, Bean], from_id: str, link_type: str, to_id: str
) -> Optional[list[str]]:
    """Return the cycle path that adding ``from_id -> to_id`` would close, or None.

    Only blocking and parent links are checked.
    """
    if link_type not in HIERARCHICAL_LINK_TYPES:
        return None

    visited: set[str] = set()

    def walk(current: str, path: list[str]) -> Optional[list[str]]:
        if current == from_id:
            return path
        if current in visited:
            return None
        visited.add(current)
        bean = beans.get(current)
        if bean is None:
            return None
        for target in _targets(bean, link_type):
            found = walk(target, path + [target])
            if found is not None:
                return found
        return None

    return walk(to_id, [from_id, to_id])


def find_cycles(beans: Mapping[str, Bean], link_type: str) -> list[Cycle]:
    """Return every distinct cycle formed by links of ``link_type``; self-links are ignored."""
    cycles: list[Cycle] = []
    visited: set[str] = set()
    in_stack: set[str] = set()
    seen: set[str] = set()

    def dfs(bean_id: str, path: list[str]) -> None:
        if bean_id in in_stack:
            if bean_id in path:
                cycle_path = path[path.index(bean_id):] + [bean_id]
                key = canonical_cycle_key(cycle_path)
                if key not in seen:
                    seen.add(key)
                    cycles.append(Cycle(link_type, cycle_path))
            return
        if bean_id in visited:
            return

        visited.add(bean_id)
        in_stack.add(bean_id)
        bean = beans.get(bean_id)
        if bean is not None:
            for target in _targets(bean, link_type):
                if target != bean_id:
                    dfs(target, path + [bean_id])
        in_stack.discard(bean_id)

    for bean_id in list(beans):
        if bean_id not in visited:
            dfs(bean_id, [])
    return cycles


def check_all_links(beans: Mapping[str, Bean]) -> LinkCheckResult:
    """Find broken links, self-references and cycles across all beans."""
    result = LinkCheckResult()
    for bean in beans.values():
        if bean.parent:
            if bean.parent == bean.id:
                result.self_links.append(SelfLink(bean.id, LINK_PARENT))
            elif bean.parent not in beans:
                result.broken_links.append(BrokenLink(bean.id, LINK_PARENT, bean.parent))

        for blocked in bean.blocking:
            if blocked == bean.id:
                result.self_links.append(SelfLink(bean.id, LINK_BLOCKING))
            elif blocked not in beans:
                result.broken_links.append(BrokenLink(bean.id, LINK_BLOCKING, blocked))

    for link_type in HIERARCHICAL_LINK_TYPES:
        result.cycles.extend(find_cycles(beans, link_type))
    return result


def canonical_cycle_key(path: Sequence[str]) -> str:
    """Return a key identifying a closed cycle path regardless of its starting point."""
    if len(path) <= 1:
        return ""
    cycle = list(path[:-1])
    start = min(range(len(cycle)), key=cycle.__getitem__)
    return "->".join(cycle[start:] + cycle[:start])


def remove_links_to(beans: Mapping[str, Bean], target_id: str) -> tuple[int, list[Bean]]:
    """Remove every link to ``target_id``; return the number removed and the beans changed."""
    removed = 0
    changed: list[Bean] = []
    for bean in beans.values():
        count = 0
        if bean.parent == target_id:
            bean.parent = ""
            count += 1
        before = len(bean.blocking)
        bean.remove_blocking(target_id)
        count += before - len(bean.blocking)
        if count:
            removed += count
            changed.append(bean)
    return removed, changed


def fix_broken_links(beans: Mapping[str, Bean]) -> tuple[int, list[Bean]]:
    """Remove links to missing beans and self-references; return the count fixed and the beans changed."""
    fixed = 0
    changed: list[Bean] = []
    for bean in beans.values():
        count = 0
        if bean.parent and (bean.parent == bean.id or bean.parent not in beans):
            bean.parent = ""
            count += 1

        kept = [b for b in bean.blocking if b != bean.id and b in beans]
        if len(kept) < len(bean.blocking):
            count += len(bean.blocking) - len(kept)
            bean.blocking = kept

        if count:
            fixed += count
            changed.append(bean)
    return fixed, changed


def valid_parent_types(bean_type: str) -> Optional[list[str]]:
    """Return the types a bean of ``bean_type`` may have as parent, or None if it may have none."""
    if bean_type == "milestone":
        return None
    if bean_type == "epic":
        return ["milestone"]
    if bean_type == "feature":
        return ["milestone", "epic"]
    return ["milestone", "epic", "feature"]


def join_with_or(items: Sequence[str]) -> str:
    """Join items with commas and a final "or"."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} or {items[1]}"
    return ", ".join(items[:-1]) + ", or " + items[-1]