"""A thread-safe in-memory bean store backed by a directory of Markdown files."""

from __future__ import annotations

import os
import sys
import threading
from datetime import datetime, timezone
from typing import Callable, Optional, TextIO, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from beanjar import links
from beanjar.config import DEFAULT_ID_LENGTH, Config
from beanjar.links import IncomingLink, LinkCheckResult
from beanjar.model import (
    DEFAULT_SEARCH_LIMIT,
    FILE_SUFFIX,
    Bean,
    SearchIndex,
    build_filename,
    new_id,
    parse_filename,
)

BEANS_DIR = ".beans"
DEBOUNCE_DELAY = 0.1

_RELEVANT_EVENTS = frozenset({"created", "modified", "deleted", "moved"})

PathArg = Union[str, "os.PathLike[str]"]


class BeanStoreError(Exception):
    """Base class for bean store errors."""


class NotFoundError(BeanStoreError, LookupError):
    """No bean matches the given ID or prefix."""

    def __init__(self, message: str = "bean not found") -> None:
        super().__init__(message)


class AmbiguousIDError(BeanStoreError, LookupError):
    """An ID prefix matches more than one bean."""

    def __init__(self, message: str = "ambiguous ID prefix matches multiple beans") -> None:
        super().__init__(message)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


class _BeanDirHandler(FileSystemEventHandler):
    """Forwards changes to bean files directly inside one directory."""

    def __init__(self, root: str, on_relevant: Callable[[], None]) -> None:
        super().__init__()
        self._root = os.path.abspath(root)
        self._on_relevant = on_relevant

    def _is_bean_file(self, path: Union[str, bytes]) -> bool:
        text = os.fsdecode(path)
        if not text.endswith(FILE_SUFFIX):
            return False
        return os.path.dirname(os.path.abspath(text)) == self._root

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _RELEVANT_EVENTS:
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        if any(self._is_bean_file(p) for p in paths):
            self._on_relevant()


class Core:
    """Holds all beans of one directory in memory and persists changes to disk."""

    def __init__(self, root: PathArg, config: Optional[Config] = None) -> None:
        self._root = os.fspath(root)
        self._config = config
        self._lock = threading.RLock()
        self._beans: dict[str, Bean] = {}
        self._search_index: Optional[SearchIndex] = None
        self._warn_writer: Optional[TextIO] = sys.stderr

        self._watching = False
        self._observer: Optional[Observer] = None
        self._on_change: Optional[Callable[[], None]] = None
        self._timer_lock = threading.Lock()
        self._debounce: Optional[threading.Timer] = None

    # -- basics -----------------------------------------------------------

    def set_warn_writer(self, writer: Optional[TextIO]) -> None:
        """Set where warnings go; None disables them."""
        self._warn_writer = writer

    def _log_warn(self, message: str) -> None:
        if self._warn_writer is not None:
            self._warn_writer.write(f"warning: {message}\n")

    @property
    def root(self) -> str:
        """Path of the beans directory."""
        return self._root

    @property
    def config(self) -> Optional[Config]:
        return self._config

    def init(self) -> None:
        """Create the beans directory if it does not exist."""
        os.makedirs(self._root, exist_ok=True)

    def full_path(self, bean: Bean) -> str:
        return os.path.join(self._root, bean.path)

    # -- loading ----------------------------------------------------------

    def load(self) -> None:
        """Read every bean file in the directory into memory."""
        with self._lock:
            self._load_from_disk()

    def _load_from_disk(self) -> None:
        beans: dict[str, Bean] = {}
        with os.scandir(self._root) as entries:
            for entry in entries:
                if entry.is_dir() or not entry.name.endswith(FILE_SUFFIX):
                    continue
                path = os.path.join(self._root, entry.name)
                try:
                    bean = self._load_bean(path)
                except (OSError, ValueError) as exc:
                    raise BeanStoreError(f"loading {path}: {exc}") from exc
                beans[bean.id] = bean
        self._beans = beans

        if self._search_index is not None:
            self._search_index.close()
            self._search_index = None
            try:
                self._ensure_search_index()
            except BeanStoreError as exc:
                self._log_warn(f"failed to reinitialize search index after reload: {exc}")

    def _load_bean(self, path: str) -> Bean:
        with open(path, encoding="utf-8") as fh:
            bean = Bean.parse(fh.read())

        bean.path = os.path.relpath(path, self._root)
        bean.id, bean.slug = parse_filename(os.path.basename(path))

        if not bean.type:
            bean.type = "task"
        if not bean.priority:
            bean.priority = "normal"
        if bean.created_at is None:
            if bean.updated_at is not None:
                bean.created_at = bean.updated_at
            else:
                try:
                    mtime = os.stat(path).st_mtime
                except OSError:
                    pass
                else:
                    bean.created_at = datetime.fromtimestamp(mtime, timezone.utc).replace(
                        microsecond=0
                    )
        if bean.updated_at is None:
            bean.updated_at = bean.created_at
        return bean

    # -- search -----------------------------------------------------------

    def _ensure_search_index(self) -> SearchIndex:
        if self._search_index is None:
            index = SearchIndex()
            try:
                index.index_beans(self._beans.values())
            except Exception as exc:
                raise BeanStoreError(f"populating search index: {exc}") from exc
            self._search_index = index
        return self._search_index

    def search(self, query: str) -> list[Bean]:
        """Full-text search; the index is built on first use."""
        with self._lock:
            index = self._ensure_search_index()
        ids = index.search(query, DEFAULT_SEARCH_LIMIT)
        with self._lock:
            return [self._beans[i] for i in ids if i in self._beans]

    # -- access -----------------------------------------------------------

    def all(self) -> list[Bean]:
        with self._lock:
            return list(self._beans.values())

    def _resolve(self, id_prefix: str) -> tuple[str, Bean]:
        exact = self._beans.get(id_prefix)
        if exact is not None:
            return id_prefix, exact
        matches = [(i, b) for i, b in self._beans.items() if i.startswith(id_prefix)]
        if not matches:
            raise NotFoundError()
        if len(matches) > 1:
            raise AmbiguousIDError()
        return matches[0]

    def get(self, id_prefix: str) -> Bean:
        """Find a bean by exact ID, or else by a unique ID prefix."""
        with self._lock:
            return self._resolve(id_prefix)[1]

    # -- mutation ---------------------------------------------------------

    def create(self, bean: Bean) -> None:
        """Add a bean, generating an ID if it has none, and write it to disk."""
        with self._lock:
            if not bean.id:
                prefix = ""
                length = DEFAULT_ID_LENGTH
                if self._config is not None:
                    prefix = self._config.beans.prefix
                    if self._config.beans.id_length > 0:
                        length = self._config.beans.id_length
                bean.id = new_id(prefix, length)

            now = _now()
            bean.created_at = now
            bean.updated_at = now

            self._save_to_disk(bean)
            self._beans[bean.id] = bean

            if self._search_index is not None:
                try:
                    self._search_index.index_bean(bean)
                except Exception as exc:
                    self._log_warn(f"failed to index bean {bean.id}: {exc}")

    def update(self, bean: Bean) -> None:
        """Write an existing bean back to disk with a fresh update time."""
        with self._lock:
            if bean.id not in self._beans:
                raise NotFoundError()

            bean.updated_at = _now()
            self._save_to_disk(bean)
            self._beans[bean.id] = bean

            if self._search_index is not None:
                try:
                    self._search_index.index_bean(bean)
                except Exception as exc:
                    self._log_warn(f"failed to update bean {bean.id} in search index: {exc}")

    def _save_to_disk(self, bean: Bean) -> None:
        if bean.path:
            path = os.path.join(self._root, bean.path)
        else:
            filename = build_filename(bean.id, bean.slug)
            path = os.path.join(self._root, filename)
            bean.path = filename

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        content = bean.render()
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(content)

    def delete(self, id_prefix: str) -> None:
        """Remove a bean, found by ID or unique prefix, from disk and memory."""
        with self._lock:
            target_id, bean = self._resolve(id_prefix)
            os.remove(os.path.join(self._root, bean.path))
            del self._beans[target_id]

            if self._search_index is not None:
                try:
                    self._search_index.delete_bean(target_id)
                except Exception as exc:
                    self._log_warn(f"failed to remove bean {target_id} from search index: {exc}")

    def close(self) -> None:
        """Close the search index and stop any watcher."""
        with self._lock:
            if self._search_index is not None:
                self._search_index.close()
                self._search_index = None
            self._unwatch_locked()

    # -- links ------------------------------------------------------------

    def find_incoming_links(self, target_id: str) -> list[IncomingLink]:
        with self._lock:
            return links.find_incoming_links(self._beans, target_id)

    def detect_cycle(self, from_id: str, link_type: str, to_id: str) -> Optional[list[str]]:
        """Return the cycle that adding ``from_id -> to_id`` would create, or None."""
        with self._lock:
            return links.detect_cycle(self._beans, from_id, link_type, to_id)

    def check_all_links(self) -> LinkCheckResult:
        with self._lock:
            return links.check_all_links(self._beans)

    def remove_links_to(self, target_id: str) -> int:
        """Remove all links to ``target_id`` and save the changed beans; return the count."""
        with self._lock:
            removed, changed = links.remove_links_to(self._beans, target_id)
            for bean in changed:
                self._save_to_disk(bean)
            return removed

    def fix_broken_links(self) -> int:
        """Remove broken links and self-references and save; return the count fixed."""
        with self._lock:
            fixed, changed = links.fix_broken_links(self._beans)
            for bean in changed:
                self._save_to_disk(bean)
            return fixed

    def validate_parent(self, bean: Bean, parent_id: str) -> None:
        """Raise ValueError unless ``parent_id`` may be the parent of ``bean``."""
        if not parent_id:
            return
        valid_types = links.valid_parent_types(bean.type)
        if valid_types is None:
            raise ValueError(f"{bean.type} beans cannot have a parent")
        try:
            parent = self.get(parent_id)
        except BeanStoreError:
            raise ValueError(f"parent bean not found: {parent_id}") from None
        if parent.type not in valid_types:
            raise ValueError(
                f"{bean.type} beans can only have {links.join_with_or(valid_types)} "
                f"as parent, not {parent.type}"
            )

    # -- watching ---------------------------------------------------------

    def watch(self, on_change: Callable[[], None]) -> None:
        """Reload on changes to bean files, then call ``on_change``; debounced."""
        with self._lock:
            if self._watching:
                return
            if not os.path.isdir(self._root):
                raise FileNotFoundError(f"no such directory: {self._root}")

            observer = Observer()
            observer.schedule(
                _BeanDirHandler(self._root, self._schedule_reload),
                self._root,
                recursive=False,
            )
            observer.daemon = True
            try:
                observer.start()
            except Exception:
                observer.stop()
                raise

            self._observer = observer
            self._on_change = on_change
            self._watching = True

    def unwatch(self) -> None:
        """Stop watching; does nothing if not watching."""
        with self._lock:
            self._unwatch_locked()

    def _unwatch_locked(self) -> None:
        if not self._watching:
            return
        self._watching = False
        self._on_change = None
        observer, self._observer = self._observer, None
        with self._timer_lock:
            if self._debounce is not None:
                self._debounce.cancel()
                self._debounce = None
        if observer is not None:
            observer.stop()
            observer.join()

    def _schedule_reload(self) -> None:
        with self._timer_lock:
            if self._debounce is not None:
                self._debounce.cancel()
            timer = threading.Timer(DEBOUNCE_DELAY, self._handle_change)
            timer.daemon = True
            self._debounce = timer
            timer.start()

    def _handle_change(self) -> None:
        with self._lock:
            if not self._watching:
                return
            try:
                self._load_from_disk()
            except (OSError, BeanStoreError):
                return
            callback = self._on_change
        if callback is not None:
            callback()


def init_beans_dir(directory: PathArg) -> str:
    """Create the beans directory inside ``directory``; return its path."""
    path = os.path.join(os.fspath(directory), BEANS_DIR)
    os.makedirs(path, exist_ok=True)
    return path