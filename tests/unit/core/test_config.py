"""Tests for configuration loading."""

from pathlib import Path

import pytest

from teststability.core.config import Config, HistoryConfig, State
from teststability.core.yaml_settings import (
    YamlWithIncludesSettingsSource,
    cli_includes,
    deep_merge,
)


def test_defaults_loaded(isolated_argv):
    """Package defaults apply when no other config exists."""
    state = State()

    assert state.config.history.capacity == 30
    assert state.config.history.strict is False
    assert state.config.history.store_file.name == "history.yaml"
    assert "{" not in str(state.config.history.store_file)


def test_project_file_overrides_defaults(isolated_argv):
    store = isolated_argv / "data" / "stability.yaml"
    (isolated_argv / "teststability.yaml").write_text(f"""
config:
  history:
    capacity: 5
    store_file: {store}
""")

    state = State()

    assert state.config.history.capacity == 5
    assert state.config.history.store_file == store
    assert state.config.history.strict is False


def test_include_directive_merges_under_including_file(isolated_argv):
    (isolated_argv / "base.yaml").write_text("""
config:
  history:
    capacity: 3
    strict: true
""")
    (isolated_argv / "teststability.yaml").write_text("""
include: base.yaml
config:
  history:
    capacity: 9
""")

    state = State()

    assert state.config.history.capacity == 9
    assert state.config.history.strict is True


def test_config_template_substitution(isolated_argv):
    (isolated_argv / "teststability.yaml").write_text(f"""
config:
  log_root: {isolated_argv}/logs
  history:
    store_file: "{{config.log_root}}/history.yaml"
""")

    state = State()

    assert state.config.history.store_file == (
        isolated_argv / "logs" / "history.yaml"
    )


def test_circular_include_detected(isolated_argv):
    (isolated_argv / "a.yaml").write_text("include: b.yaml\n")
    (isolated_argv / "b.yaml").write_text("include: a.yaml\n")

    with pytest.raises(ValueError, match="Circular include"):
        YamlWithIncludesSettingsSource(
            State, yaml_file=str(isolated_argv / "a.yaml")
        )


def test_missing_include_file_raises_error(isolated_argv):
    (isolated_argv / "teststability.yaml").write_text("include: nope.yaml\n")

    with pytest.raises(FileNotFoundError):
        YamlWithIncludesSettingsSource(State)


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        HistoryConfig(capacity=-1)


def test_config_installs_logger(tmp_path):
    """Building a Config sets up the global logger."""
    from teststability.core.log import logger

    config = Config(log_root=tmp_path)

    assert config.logger is not None
    assert logger.level == config.logger.level


def test_cli_includes():
    argv = ["prog", "--include", "a.yaml", "show", "--include=b.yaml"]

    assert cli_includes(argv) == ["a.yaml", "b.yaml"]
    assert cli_includes(["prog", "--include"]) == []


def test_deep_merge_overrides_nested_values():
    base = {"config": {"history": {"capacity": 1, "strict": False}}}
    override = {"config": {"history": {"capacity": 2}}, "extra": [1]}

    assert deep_merge(base, override) == {
        "config": {"history": {"capacity": 2, "strict": False}},
        "extra": [1],
    }
    assert base["config"]["history"]["capacity"] == 1


def test_default_file_ships_with_package():
    import teststability.core.yaml_settings as module

    default = Path(module.__file__).parent.parent / "defaults" / "default.yaml"
    assert default.is_file()


def test_read_files_accepts_deep_merge_flag(isolated_argv):
    """Newer pydantic-settings passes deep_merge to _read_files."""
    (isolated_argv / "teststability.yaml").write_text("""
config:
  history:
    capacity: 4
""")
    source = YamlWithIncludesSettingsSource(State)

    data = source._read_files(
        str(isolated_argv / "teststability.yaml"), deep_merge=True
    )

    assert data["config"]["history"]["capacity"] == 4
    assert data["config"]["history"]["strict"] is False
