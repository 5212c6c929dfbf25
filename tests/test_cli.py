"""Tests for the record and show commands."""

import pytest
from pydantic_settings import CliApp

from teststability.cli import CliState
from teststability.command.record import RecordCommand
from teststability.command.show import ShowCommand, format_result
from teststability.core.config import State
from teststability.history.result import Result
from teststability.history.store import HistoryStore


@pytest.fixture
def project(isolated_argv):
    """Project directory with a capacity-3 store under it."""
    store_file = isolated_argv / "history.yaml"
    (isolated_argv / "teststability.yaml").write_text(f"""
config:
  history:
    capacity: 3
    store_file: {store_file}
""")
    return store_file


def run_cli(*args):
    with pytest.raises(SystemExit) as exc_info:
        CliApp.run(CliState, cli_args=list(args))
    return exc_info.value.code


def test_record_command_appends_and_evicts(project):
    state = State()
    for build in range(1, 5):
        command = RecordCommand(test_id="suite.T.test_a", build=build,
                                passed=build != 3)
        assert command.run(state) == 0

    history = HistoryStore(project).load().history_for("suite.T.test_a")
    assert history.capacity == 3
    assert history.snapshot() == [
        Result(build_number=2, passed=True),
        Result(build_number=3, passed=False),
        Result(build_number=4, passed=True),
    ]


def test_show_command_prints_oldest_first(project, capsys):
    state = State()
    RecordCommand(test_id="t", build=10, passed=True).run(state)
    RecordCommand(test_id="t", build=11, passed=False).run(state)
    capsys.readouterr()

    assert ShowCommand(test_id="t").run(state) == 0
    assert capsys.readouterr().out.endswith("#10 PASS\n#11 FAIL\n")


def test_show_unknown_test_fails(project):
    assert ShowCommand(test_id="missing").run(State()) == 1


def test_commands_fail_on_corrupt_store(project):
    project.write_text(
        "histories:\n"
        "  t:\n"
        "    head: 0\n"
        "    tail: 0\n"
        "    size: 1\n"
        "    data: abc\n"
    )
    state = State()

    assert ShowCommand(test_id="t").run(state) == 1
    assert RecordCommand(test_id="t", build=1).run(state) == 1
    assert "abc" in project.read_text()


def test_command_accepts_cli_aliases():
    command = RecordCommand.model_validate({"test-id": "x", "build": 2})

    assert command.test_id == "x"
    assert command.passed is True


def test_format_result():
    assert format_result(Result(build_number=7, passed=False)) == "#7 FAIL"


def test_cli_record_then_show(project, capsys):
    assert run_cli("record", "--test-id", "t", "--build", "5") == 0
    assert run_cli("record", "--test-id", "t", "--build", "6",
                   "--no-passed") == 0
    capsys.readouterr()

    assert run_cli("show", "--test-id", "t") == 0
    assert capsys.readouterr().out.endswith("#5 PASS\n#6 FAIL\n")


def test_cli_without_subcommand_exits_nonzero(project):
    assert run_cli() == 1


def test_commands_fail_on_unparseable_store(project):
    project.write_text("histories: [\n  a: {head: 0\n")
    state = State()

    assert ShowCommand(test_id="a").run(state) == 1
    assert RecordCommand(test_id="a", build=1).run(state) == 1
