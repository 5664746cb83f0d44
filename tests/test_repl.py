"""
Tests for the REPL: parsing, completion and command dispatch.
"""

# Path setup handled by conftest.py
import pytest
from prompt_toolkit.document import Document

from stabilizer.core import service
from stabilizer.core.constants import DEFAULT_DOMAIN
from stabilizer.repl.completer import create_completer
from stabilizer.repl.main import execute_command, repl_context
from stabilizer.repl.parser import parse_command


@pytest.fixture(autouse=True)
def reset_domain():
    """The working domain is module state; put it back after each test."""
    yield
    repl_context.domain = DEFAULT_DOMAIN


def complete(text):
    completer = create_completer()
    return [c.text for c in completer.get_completions(Document(text, cursor_position=len(text)), None)]


# --- Parser ---


def test_parse_quoted_title_and_value_flags():
    result = parse_command('add "Renew passport" --due 2026-03-01 --estimate 30')
    assert result.command == "add"
    assert result.args == ["Renew passport"]
    assert result.flags == {"due": "2026-03-01", "estimate": "30"}


def test_boolean_flags_never_take_values():
    result = parse_command('ADD --pin "Call bank"')
    assert result.command == "add"
    assert result.args == ["Call bank"]
    assert result.flags == {"pin": True}

    assert parse_command("ls --all --status TODAY").flags == {"all": True, "status": "TODAY"}


def test_parse_edge_cases():
    assert parse_command("   ").command == ""
    assert parse_command("check 2 PARTIAL").args == ["2", "PARTIAL"]
    # unclosed quote falls back to whitespace splitting
    assert parse_command('add "half open').args == ['"half', "open"]
    assert parse_command("ls --status").flags == {"status": True}


# --- Completer ---


def test_command_completion():
    assert "today" in complete("to")
    assert set(complete("s")) == {"start", "stats"}
    assert "habits" in complete("")


def test_domain_value_completion():
    assert complete("domain ") == ["LIFE_ADMIN", "BUSINESS"]
    assert complete("domain b") == ["BUSINESS"]
    assert complete("ls --domain l") == ["LIFE_ADMIN"]


def test_status_and_range_completion():
    assert complete("ls --status p") == ["PENDING"]
    assert complete("check 3 s") == ["SKIP"]
    assert "THREE_MONTHS" in complete("stats 1 ")


def test_flag_completion():
    flags = complete("add ")
    assert "--due" in flags
    assert "--pin" in flags
    assert complete("today --m") == ["--max"]
    # typing a title suggests nothing
    assert complete('add "Pay') == []


# --- Dispatch ---


def test_exit_and_quit_stop_the_loop():
    assert execute_command(parse_command("exit")) is False
    assert execute_command(parse_command("QUIT")) is False
    assert execute_command(parse_command("")) is True


def test_unknown_command_keeps_running(capsys):
    assert execute_command(parse_command("fly")) is True
    assert "Unknown command" in capsys.readouterr().out


def test_add_uses_working_domain():
    execute_command(parse_command('add "Invoice client" --estimate 20'))
    execute_command(parse_command("domain business"))
    assert repl_context.domain == "BUSINESS"
    assert repl_context.get_prompt() == "stabilizer:[business]> "

    execute_command(parse_command('add "Write proposal" --pin'))

    life = service.list_tasks(domain="LIFE_ADMIN")
    business = service.list_tasks(domain="BUSINESS")
    assert [t.title for t in life] == ["Invoice client"]
    assert life[0].estimate_minutes == 20
    assert [(t.title, t.status) for t in business] == [("Write proposal", "TODAY")]


def test_bad_domain_is_rejected(capsys):
    execute_command(parse_command("domain hobbies"))
    assert repl_context.domain == DEFAULT_DOMAIN
    assert repl_context.get_prompt() == "stabilizer> "
    assert "Unknown domain" in capsys.readouterr().out


def test_transitions_report_each_id(capsys):
    task = service.create_task("Book appointment")

    execute_command(parse_command(f"done {task.id} 999"))
    out = capsys.readouterr().out
    assert "Completed: Book appointment" in out
    assert "Task 999 not found" in out
    assert service.get_task(task.id).status == "DONE"

    execute_command(parse_command(f"undo {task.id}"))
    assert service.get_task(task.id).status == "BACKLOG"


def test_check_logs_habit(capsys):
    habit = service.create_habit("Floss", allow_skip=False)

    execute_command(parse_command(f"check {habit.id}"))
    assert "DONE" in capsys.readouterr().out

    execute_command(parse_command(f"check {habit.id} skip"))
    assert "cannot be skipped" in capsys.readouterr().out

    execute_command(parse_command(f"stats {habit.id}"))
    out = capsys.readouterr().out
    assert "Floss" in out
    assert "Streak" in out
