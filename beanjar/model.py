"""Beans as stored on disk, their file names and IDs, and an in-memory full-text index."""

from __future__ import annotations

import re
import secrets
import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Union

import yaml

FILE_SUFFIX = ".md"
FILENAME_SEPARATOR = "--"
FRONTMATTER_DELIMITER = "---"
ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
DEFAULT_SEARCH_LIMIT = 100

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_SLUG_JUNK = re.compile(r"[^a-z0-9]+")
_WORD = re.compile(r"\w+")
_TITLE_WEIGHT = 2


def _to_utc(value: Any, key: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"invalid timestamp for {key}: {value!r}") from exc
    else:
        raise ValueError(f"invalid timestamp for {key}: {value!r}")
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _as_str(value: Any, key: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ValueError(f"{key} must be a string, got {value!r}")
    return str(value)


def _as_str_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list, got {value!r}")
    return [_as_str(item, key) for item in value]


@dataclass
class Bean:
    """A single tracked item: frontmatter metadata plus a Markdown body."""

    id: str = ""
    slug: str = ""
    path: str = ""
    title: str = ""
    status: str = ""
    type: str = ""
    priority: str = ""
    tags: list[str] = field(default_factory=list)
    blocking: list[str] = field(default_factory=list)
    parent: str = ""
    body: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def parse(cls, text: Union[str, bytes]) -> "Bean":
        """Parse a bean document; ID, slug and path come from the file name, not the content."""
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        text = text.replace("\r\n", "\n")
        lines = text.split("\n")
        if not lines or lines[0].rstrip() != FRONTMATTER_DELIMITER:
            return cls(body=text.strip("\n"))

        try:
            end = next(
                i for i, line in enumerate(lines[1:], start=1)
                if line.rstrip() == FRONTMATTER_DELIMITER
            )
        except StopIteration:
            raise ValueError("unterminated frontmatter") from None

        try:
            meta = yaml.safe_load("\n".join(lines[1:end]))
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid frontmatter: {exc}") from exc
        if meta is None:
            meta = {}
        if not isinstance(meta, dict):
            raise ValueError("frontmatter must be a mapping")

        body = "\n".join(lines[end + 1:]).strip("\n")
        return cls(
            title=_as_str(meta.get("title"), "title"),
            status=_as_str(meta.get("status"), "status"),
            type=_as_str(meta.get("type"), "type"),
            priority=_as_str(meta.get("priority"), "priority"),
            tags=_as_str_list(meta.get("tags"), "tags"),
            blocking=_as_str_list(meta.get("blocking"), "blocking"),
            parent=_as_str(meta.get("parent"), "parent"),
            body=body,
            created_at=_to_utc(meta.get("created_at"), "created_at"),
            updated_at=_to_utc(meta.get("updated_at"), "updated_at"),
        )

    def render(self) -> str:
        """Render the bean as a frontmatter document."""
        meta: dict[str, Any] = {"title": self.title, "status": self.status}
        if self.type:
            meta["type"] = self.type
        if self.priority:
            meta["priority"] = self.priority
        if self.tags:
            meta["tags"] = list(self.tags)
        if self.created_at is not None:
            meta["created_at"] = self.created_at.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)
        if self.updated_at is not None:
            meta["updated_at"] = self.updated_at.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)
        if self.parent:
            meta["parent"] = self.parent
        if self.blocking:
            meta["blocking"] = list(self.blocking)

        header = yaml.safe_dump(
            meta, sort_keys=False, default_flow_style=False, allow_unicode=True
        )
        document = f"{FRONTMATTER_DELIMITER}\n{header}{FRONTMATTER_DELIMITER}\n"
        body = self.body.strip("\n")
        if body:
            document += f"\n{body}\n"
        return document

    def is_blocking(self, bean_id: str) -> bool:
        return bean_id in self.blocking

    def remove_blocking(self, bean_id: str) -> None:
        """Drop every blocking link to ``bean_id``."""
        self.blocking = [b for b in self.blocking if b != bean_id]


def parse_filename(filename: str) -> tuple[str, str]:
    """Split ``<id>--<slug>.md`` into its ID and slug; the slug is empty if absent."""
    stem = filename[: -len(FILE_SUFFIX)] if filename.endswith(FILE_SUFFIX) else filename
    bean_id, _, slug = stem.partition(FILENAME_SEPARATOR)
    return bean_id, slug


def build_filename(bean_id: str, slug: str) -> str:
    """Return the file name for a bean with the given ID and slug."""
    if slug:
        return f"{bean_id}{FILENAME_SEPARATOR}{slug}{FILE_SUFFIX}"
    return f"{bean_id}{FILE_SUFFIX}"


def new_id(prefix: str, length: int) -> str:
    """Return ``prefix`` followed by ``length`` random lowercase alphanumerics."""
    if length <= 0:
        raise ValueError(f"ID length must be positive, got {length}")
    return prefix + "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def slugify(title: str) -> str:
    """Turn a title into a lowercase, hyphen-separated slug."""
    return _SLUG_JUNK.sub("-", title.lower()).strip("-")


def _tokens(text: str) -> list[str]:
    return _WORD.findall(text.lower())


class SearchIndex:
    """A thread-safe in-memory full-text index over bean IDs, titles and bodies."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._docs: Optional[dict[str, tuple[Counter, Counter]]] = {}

    def _require_open(self) -> dict[str, tuple[Counter, Counter]]:
        if self._docs is None:
            raise RuntimeError("search index is closed")
        return self._docs

    @staticmethod
    def _document(bean: Bean) -> tuple[Counter, Counter]:
        title = Counter(_tokens(bean.title))
        rest = Counter(_tokens(bean.body))
        rest.update(_tokens(bean.id))
        return title, rest

    def index_beans(self, beans: Iterable[Bean]) -> None:
        docs = {bean.id: self._document(bean) for bean in beans}
        with self._lock:
            self._require_open().update(docs)

    def index_bean(self, bean: Bean) -> None:
        doc = self._document(bean)
        with self._lock:
            self._require_open()[bean.id] = doc

    def delete_bean(self, bean_id: str) -> None:
        with self._lock:
            self._require_open().pop(bean_id, None)

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[str]:
        """Return IDs of beans matching any query term, best matches first."""
        terms = set(_tokens(query))
        with self._lock:
            docs = self._require_open()
            scored = []
            for bean_id, (title, rest) in docs.items():
                score = sum(_TITLE_WEIGHT * title[t] + rest[t] for t in terms)
                if score:
                    scored.append((-score, bean_id))
        scored.sort()
        return [bean_id for _, bean_id in scored[: max(limit, 0)]]

    def close(self) -> None:
        with self._lock:
            self._docs = None