# beanjar

beanjar keeps a project's issues ("beans") as Markdown files with YAML
front matter in a `.beans` directory. It is a library: an in-memory,
thread-safe store over those files, with link checking, filtering,
full-text search and reloading when the files change on disk.

## Installing

```
pip install beanjar
```

For running the tests:

```
pip install "beanjar[test]"
pytest
```

## Modules

- `beanjar.config`: the `.beans.yml` project configuration and the fixed
  sets of statuses, types and priorities.
- `beanjar.model`: the `Bean` dataclass, reading and writing bean files,
  file names, IDs, slugs and the in-memory `SearchIndex`.
- `beanjar.links`: incoming links, cycle detection and link validation
  over a mapping of ID to bean.
- `beanjar.store`: `Core`, the store over one beans directory.
- `beanjar.filters`: `BeanFilter` and `apply_filter`.

## Configuration

A project is configured by a `.beans.yml` file. `load_from_directory`
searches for it upward from a starting directory; if none is found it
returns the defaults anchored at that directory.

```python
from beanjar.config import load_from_directory

cfg = load_from_directory(".")
print(cfg.resolve_beans_path())
print(cfg.status_list())    # in-progress, todo, draft, completed, scrapped
print(cfg.type_list())      # milestone, epic, bug, feature, task
print(cfg.priority_list())  # critical, high, normal, low, deferred
```

Statuses, types and priorities are fixed; any such lists in the file are
ignored. The file sets only the beans directory, an ID prefix, the ID
length and the default status and type:

```yaml
beans:
  path: .beans
  prefix: "app-"
  id_length: 4
  default_status: todo
  default_type: task
```

When a file is loaded, missing values become `.beans`, `4`, `todo` and
`milestone` (the first type). `default()` gives `.beans`, `4`, `todo` and
`task`. `Config.save(directory)` writes the `beans` section back to
`.beans.yml`. `completed` and `scrapped` are archive statuses
(`is_archive_status`), and `get_bean_colors` resolves display colours for
a status, type and priority.

## Bean files

Each bean is a file named `<id>--<slug>.md` (or `<id>.md` without a slug)
directly in the beans directory. The ID and slug come from the file name;
the front matter holds `title`, `status`, `type`, `priority`, `tags`,
`created_at`, `updated_at`, `parent` and `blocking`, and the rest of the
file is the body. On loading, a missing type becomes `task`, a missing
priority `normal`, and a missing creation time is taken from the update
time or else the file's modification time.

```python
from beanjar.model import Bean, build_filename, new_id, parse_filename, slugify

slugify("Fix the Login page!")       # "fix-the-login-page"
build_filename("ab12", "fix-login")  # "ab12--fix-login.md"
parse_filename("ab12--fix-login.md") # ("ab12", "fix-login")
new_id("app-", 4)                    # "app-" + 4 random lowercase letters/digits

text = Bean(title="Fix login", status="todo").render()
bean = Bean.parse(text)
```

## Working with the store

```python
from beanjar.config import load_from_directory
from beanjar.model import Bean, slugify
from beanjar.store import AmbiguousIDError, Core, NotFoundError

cfg = load_from_directory(".")
core = Core(cfg.resolve_beans_path(), cfg)
core.init()                 # create the directory if missing
core.load()                 # read every .md file in it

bean = Bean(title="Fix login", slug=slugify("Fix login"), status="todo", type="bug")
core.create(bean)           # assigns an ID if empty, sets timestamps, writes the file

found = core.get(bean.id)   # exact ID, or else a unique ID prefix
found.status = "in-progress"
core.update(found)          # refreshes updated_at and rewrites the file

for hit in core.search("login"):
    print(hit.id, hit.title)

try:
    core.delete("nope")
except NotFoundError:
    pass

core.close()
```

`get` and `delete` raise `NotFoundError` when nothing matches and
`AmbiguousIDError` when a prefix matches more than one bean; both derive
from `BeanStoreError`. `update` raises `NotFoundError` for a bean the
store does not hold. `core.root` and `core.config` give the directory and
the configuration, `core.all()` every bean, and `core.full_path(bean)` the
path of its file. `init_beans_dir(directory)` creates `.beans` inside a
directory and returns its path.

Search matches any word of the query against bean titles, bodies and IDs,
case-insensitively; title matches count double, and at most 100 results
come back, best first. The index is built on the first search and kept
up to date by `create`, `update`, `delete` and `load`.

## Links

A bean can have a `parent` and a list of beans it is `blocking`.

```python
result = core.check_all_links()
if result.has_issues():
    print(result.total_issues(), "link problems")
    print(result.to_dict())
core.fix_broken_links()     # drops links to missing beans and self-links, saves
core.remove_links_to("ab12")
core.find_incoming_links("ab12")
core.detect_cycle("abc1", "blocking", "def2")  # path of the cycle, or None
core.validate_parent(bean, "ms01")             # raises ValueError if not allowed
```

Milestones cannot have a parent; epics may have a milestone; features a
milestone or epic; anything else a milestone, epic or feature.

## Filtering

```python
from beanjar.filters import BeanFilter, apply_filter

open_bugs = apply_filter(
    core.all(),
    BeanFilter(type=["bug"], exclude_status=["completed", "scrapped"]),
    core,
)
```

Inclusion lists keep beans matching any value; exclusion lists drop
them. An empty priority counts as `normal`. The store is only needed for
`is_blocked`; without it that filter raises `ValueError`.

## Watching for changes

```python
core.watch(lambda: print("beans changed"))
# ... edit files in .beans from elsewhere ...
core.unwatch()
```

Changes to `.md` files directly in the beans directory are debounced by
0.1 seconds; the store then reloads itself from disk and calls the
callback. `close()` also stops watching.

## What it does not do

beanjar has no command-line tool, no query server and no interactive
screen. It is a library for programs that read and change beans.