import os

import pytest
import yaml

from beanjar import config
from beanjar.config import (
    CONFIG_FILE_NAME,
    DEFAULT_BEANS_PATH,
    DEFAULT_PRIORITIES,
    DEFAULT_STATUSES,
    DEFAULT_TYPES,
    BeanColors,
    BeansConfig,
    Config,
)


def test_default():
    cfg = config.default()
    assert cfg.beans.id_length == 4
    assert cfg.beans.prefix == ""
    assert cfg.beans.default_status == "todo"
    assert cfg.beans.default_type == "task"
    assert len(DEFAULT_TYPES) == 5
    assert len(DEFAULT_STATUSES) == 5


def test_default_with_prefix():
    cfg = config.default_with_prefix("myapp-")
    assert cfg.beans.prefix == "myapp-"
    assert cfg.beans.id_length == 4


@pytest.mark.parametrize(
    "status,want",
    [
        ("draft", True),
        ("todo", True),
        ("in-progress", True),
        ("completed", True),
        ("scrapped", True),
        ("invalid", False),
        ("", False),
        ("TODO", False),
        ("open", False),
        ("done", False),
        ("ready", False),
        ("not-ready", False),
        ("backlog", False),
    ],
)
def test_is_valid_status(status, want):
    assert config.default().is_valid_status(status) is want


def test_status_list():
    assert config.default().status_list() == "in-progress, todo, draft, completed, scrapped"


def test_status_names():
    assert config.default().status_names() == [
        "in-progress",
        "todo",
        "draft",
        "completed",
        "scrapped",
    ]


def test_get_status_existing():
    s = config.default().get_status("todo")
    assert s is not None
    assert s.name == "todo"
    assert s.color == "green"


@pytest.mark.parametrize("name", ["invalid", "open", "done", "ready"])
def test_get_status_unknown(name):
    assert config.default().get_status(name) is None


def test_get_default_status():
    assert config.default().get_default_status() == "todo"


def test_get_default_status_when_empty():
    assert Config().get_default_status() == "todo"


def test_get_default_type():
    assert config.default().get_default_type() == "task"


@pytest.mark.parametrize(
    "status,want",
    [
        ("completed", True),
        ("scrapped", True),
        ("draft", False),
        ("todo", False),
        ("in-progress", False),
        ("invalid", False),
    ],
)
def test_is_archive_status(status, want):
    assert config.default().is_archive_status(status) is want


def test_load_non_existent():
    cfg = config.load("/nonexistent/path/that/does/not/exist")
    assert cfg.beans.id_length == 4


def test_load_and_save(tmp_path):
    cfg = Config(
        beans=BeansConfig(path=".beans", prefix="test-", id_length=6, default_type="bug")
    )
    cfg.config_dir = str(tmp_path)
    cfg.save(str(tmp_path))

    config_path = tmp_path / CONFIG_FILE_NAME
    assert config_path.exists()

    loaded = config.load(str(config_path))
    assert loaded.beans.prefix == "test-"
    assert loaded.beans.id_length == 6
    assert loaded.beans.default_type == "bug"
    assert len(loaded.status_names()) == 5


def test_save_omits_empty_optional_fields(tmp_path):
    cfg = Config(beans=BeansConfig(prefix="p-", id_length=4))
    cfg.save(str(tmp_path))
    data = yaml.safe_load((tmp_path / CONFIG_FILE_NAME).read_text())
    assert data == {"beans": {"prefix": "p-", "id_length": 4}}


def test_save_prefers_config_dir(tmp_path):
    anchored = tmp_path / "anchored"
    other = tmp_path / "other"
    anchored.mkdir()
    other.mkdir()
    cfg = config.default()
    cfg.config_dir = str(anchored)
    cfg.save(str(other))
    assert (anchored / CONFIG_FILE_NAME).exists()
    assert not (other / CONFIG_FILE_NAME).exists()


def test_load_applies_defaults(tmp_path):
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text('beans:\n  prefix: "my-"\n')

    cfg = config.load(str(config_path))
    assert cfg.beans.id_length == 4
    assert len(cfg.status_names()) == 5
    assert cfg.get_default_status() == "todo"
    assert cfg.beans.default_type == "milestone"
    assert cfg.beans.path == DEFAULT_BEANS_PATH
    assert cfg.config_dir == str(tmp_path)


def test_load_malformed_yaml_raises(tmp_path):
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text("beans: [unclosed\n")
    with pytest.raises(yaml.YAMLError):
        config.load(str(config_path))


def test_statuses_are_hardcoded():
    cfg = config.default()
    for status in ["draft", "todo", "in-progress", "completed", "scrapped"]:
        assert cfg.is_valid_status(status)
    assert cfg.is_archive_status("completed")
    assert cfg.is_archive_status("scrapped")
    assert not cfg.is_archive_status("todo")


@pytest.mark.parametrize(
    "type_name,want",
    [
        ("epic", True),
        ("milestone", True),
        ("feature", True),
        ("bug", True),
        ("task", True),
        ("invalid", False),
        ("", False),
        ("TASK", False),
    ],
)
def test_is_valid_type(type_name, want):
    assert config.default().is_valid_type(type_name) is want


def test_type_list():
    assert config.default().type_list() == "milestone, epic, bug, feature, task"


def test_get_type_existing():
    typ = config.default().get_type("bug")
    assert typ is not None
    assert typ.name == "bug"
    assert typ.color == "red"


def test_get_type_unknown():
    assert config.default().get_type("invalid-type") is None


def test_all_hardcoded_types_exist():
    cfg = config.default()
    for name in ["milestone", "epic", "bug", "feature", "task"]:
        assert cfg.get_type(name).name == name


def test_types_are_hardcoded(tmp_path):
    cfg = Config(beans=BeansConfig(path=".beans", prefix="test-", id_length=4, default_type="task"))
    cfg.config_dir = str(tmp_path)
    cfg.save(str(tmp_path))

    loaded = config.load(str(tmp_path / CONFIG_FILE_NAME))
    assert len(loaded.type_names()) == 5
    for name in ["milestone", "epic", "bug", "feature", "task"]:
        assert loaded.is_valid_type(name)
    assert len(loaded.status_names()) == 5


@pytest.mark.parametrize(
    "name,description",
    [
        ("epic", "A thematic container for related work; should have child beans, not be worked on directly"),
        ("milestone", "A target release or checkpoint; group work that should ship together"),
        ("feature", "A user-facing capability or enhancement"),
        ("bug", "Something that is broken and needs fixing"),
        ("task", "A concrete piece of work to complete (eg. a chore, or a sub-task for a feature)"),
    ],
)
def test_type_descriptions(name, description):
    assert config.default().get_type(name).description == description


def test_types_in_config_file_are_ignored(tmp_path):
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text(
        'beans:\n  prefix: "test-"\n  id_length: 4\n  default_status: open\n'
        "statuses:\n  - name: open\n    color: green\n"
        'types:\n  - name: custom-type\n    color: pink\n    description: "This should be ignored"\n'
    )
    loaded = config.load(str(config_path))
    assert not loaded.is_valid_type("custom-type")
    assert loaded.is_valid_type("bug")


@pytest.mark.parametrize(
    "name,description",
    [
        ("draft", "Needs refinement before it can be worked on"),
        ("todo", "Ready to be worked on"),
        ("in-progress", "Currently being worked on"),
        ("completed", "Finished successfully"),
        ("scrapped", "Will not be done"),
    ],
)
def test_status_descriptions(name, description):
    assert config.default().get_status(name).description == description


def test_statuses_in_config_file_are_ignored(tmp_path):
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text(
        'beans:\n  prefix: "test-"\n  id_length: 4\n'
        'statuses:\n  - name: custom-status\n    color: pink\n    description: "This should be ignored"\n'
    )
    loaded = config.load(str(config_path))
    assert not loaded.is_valid_status("custom-status")
    assert loaded.is_valid_status("todo")


def test_find_config_in_current_directory(tmp_path):
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text("beans:\n  prefix: test-\n")
    assert config.find_config(str(tmp_path)) == str(config_path)


def test_find_config_in_parent_directory(tmp_path):
    sub_dir = tmp_path / "sub" / "dir"
    sub_dir.mkdir(parents=True)
    config_path = tmp_path / CONFIG_FILE_NAME
    config_path.write_text("beans:\n  prefix: test-\n")
    assert config.find_config(str(sub_dir)) == str(config_path)


def test_find_config_not_found(tmp_path):
    assert config.find_config(str(tmp_path)) is None


def test_load_from_directory_with_config(tmp_path):
    (tmp_path / CONFIG_FILE_NAME).write_text(
        "beans:\n  path: custom-beans\n  prefix: test-\n  id_length: 6\n"
    )
    cfg = config.load_from_directory(str(tmp_path))
    assert cfg.beans.path == "custom-beans"
    assert cfg.beans.prefix == "test-"
    assert cfg.beans.id_length == 6


def test_load_from_directory_without_config(tmp_path):
    cfg = config.load_from_directory(str(tmp_path))
    assert cfg.beans.path == DEFAULT_BEANS_PATH
    assert cfg.config_dir == str(tmp_path)


def test_resolve_beans_path_relative():
    cfg = Config(beans=BeansConfig(path="custom-beans"), config_dir="/project/root")
    assert cfg.resolve_beans_path() == os.path.join("/project/root", "custom-beans")


def test_resolve_beans_path_absolute():
    cfg = Config(beans=BeansConfig(path="/absolute/path/to/beans"), config_dir="/project/root")
    assert cfg.resolve_beans_path() == "/absolute/path/to/beans"


def test_resolve_beans_path_default():
    cfg = config.default()
    cfg.config_dir = "/project/root"
    assert cfg.resolve_beans_path() == os.path.join("/project/root", ".beans")


def test_resolve_beans_path_without_config_dir_uses_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = config.default()
    assert cfg.resolve_beans_path() == os.path.join(os.getcwd(), ".beans")


def test_default_has_beans_path():
    assert config.default().beans.path == DEFAULT_BEANS_PATH


@pytest.mark.parametrize(
    "priority,want",
    [
        ("critical", True),
        ("high", True),
        ("normal", True),
        ("low", True),
        ("deferred", True),
        ("", True),
        ("invalid", False),
        ("CRITICAL", False),
        ("medium", False),
    ],
)
def test_is_valid_priority(priority, want):
    assert config.default().is_valid_priority(priority) is want


def test_priority_list():
    assert config.default().priority_list() == "critical, high, normal, low, deferred"


def test_priority_names():
    assert config.default().priority_names() == ["critical", "high", "normal", "low", "deferred"]


def test_get_priority_existing():
    p = config.default().get_priority("high")
    assert p is not None
    assert p.name == "high"
    assert p.color == "yellow"


@pytest.mark.parametrize("name", ["invalid", ""])
def test_get_priority_unknown(name):
    assert config.default().get_priority(name) is None


@pytest.mark.parametrize(
    "name,description",
    [
        ("critical", "Urgent, blocking work. When possible, address immediately"),
        ("high", "Important, should be done before normal work"),
        ("normal", "Standard priority"),
        ("low", "Less important, can be delayed"),
        ("deferred", "Explicitly pushed back, avoid doing unless necessary"),
    ],
)
def test_priority_descriptions(name, description):
    assert config.default().get_priority(name).description == description


def test_default_priorities_count():
    cfg = config.default()
    assert len(DEFAULT_PRIORITIES) == 5
    assert len(cfg.priority_names()) == 5
    for priority in DEFAULT_PRIORITIES:
        assert cfg.get_priority(priority.name) == priority


def test_get_bean_colors_known():
    colors = config.default().get_bean_colors("todo", "bug", "high")
    assert colors == BeanColors(
        status_color="green", type_color="red", priority_color="yellow", is_archive=False
    )


def test_get_bean_colors_archived():
    colors = config.default().get_bean_colors("completed", "task", "low")
    assert colors == BeanColors(
        status_color="gray", type_color="blue", priority_color="gray", is_archive=True
    )


def test_get_bean_colors_unknown():
    colors = config.default().get_bean_colors("nope", "nope", "")
    assert colors == BeanColors(
        status_color="gray", type_color="", priority_color="", is_archive=False
    )