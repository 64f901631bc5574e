"""Basic tests for onchange."""

import tempfile
from pathlib import Path

import pytest

from onchange.config import ConfigError, RuleConfig, Settings, load_rules, parse_duration
from onchange.debouncer import Debouncer
from onchange.filters import should_ignore
from onchange.models import DispatchDecision, RawNotification
from onchange.render import render, render_command
from onchange.rules import ExtensionRuleTable
from onchange.template import Template
from onchange.variables import builtin_variables


def test_template_render():
    """Test placeholder substitution including dotted keys."""
    template = Template("cp {path} /backup/{name.ext}")

    assert template.placeholders == ["path", "name.ext"]
    assert template.render({"path": "/a/b.txt", "name.ext": "b.txt"}) == "cp /a/b.txt /backup/b.txt"


def test_template_missing_key_left_literal():
    """Test that unknown placeholders survive rendering unchanged."""
    template = Template("echo {name} {missing}")

    assert template.render({"name": "x"}) == "echo x {missing}"
    assert Template("").render({"name": "x"}) == ""


def test_debouncer_collapses_burst():
    """Test that notifications inside the quiet window are dropped."""
    debouncer = Debouncer(0.5)

    assert debouncer.accept("/a/file.txt", 10.0) is True
    assert debouncer.accept("/a/file.txt", 10.1) is False
    assert debouncer.accept("/a/file.txt", 10.49) is False
    assert debouncer.accept("/a/file.txt", 10.5) is True


def test_debouncer_measures_from_acceptance():
    """Test that the window restarts only on accepted notifications."""
    debouncer = Debouncer(1.0)

    accepted = [t for t in (0.0, 0.4, 0.8, 1.2, 1.6, 2.0, 2.4) if debouncer.accept("/f", t)]

    assert accepted == [0.0, 1.2, 2.4]


def test_debouncer_paths_independent():
    """Test that different paths never suppress each other."""
    debouncer = Debouncer(0.5)

    assert debouncer.accept("/a", 1.0) is True
    assert debouncer.accept("/b", 1.0) is True
    assert debouncer.accept("/b", 1.1) is False
    assert debouncer.accept("/c", 1.1) is True
    assert len(debouncer) == 3


def test_debouncer_rejects_negative_window():
    """Test Debouncer validation."""
    with pytest.raises(ValueError):
        Debouncer(-1)


def test_builtin_variables():
    """Test variables derived from a path relative to the working directory."""
    variables = builtin_variables("/a/b/c.txt", "/a")

    assert variables["path"] == "/a/b/c.txt"
    assert variables["dir"] == "/a/b"
    assert variables["name"] == "c"
    assert variables["ext"] == "txt"
    assert variables["name.ext"] == "c.txt"
    assert variables["pwd"] == "/a"
    assert variables["rdir"] == "b"
    assert variables["rpath"] == "b/c.txt"
    assert variables["rname"] == "b/c.txt"


def test_builtin_variables_outside_pwd():
    """Test relative variables for a path outside the working directory."""
    variables = builtin_variables("/x/y/Makefile", "/a/b")

    assert variables["ext"] == ""
    assert variables["name"] == "Makefile"
    assert variables["rpath"] == "../../x/y/Makefile"
    assert variables["rdir"] == "../../x/y"


def test_should_ignore():
    """Test glob based ignore patterns."""
    assert should_ignore("foo.tmp", ["*.tmp"]) is True
    assert should_ignore("foo.txt", ["*.tmp"]) is False
    assert should_ignore("/work/dir/foo.tmp", ["*.tmp"]) is True
    assert should_ignore("/work/.git/index", ["*/.git/*"]) is True
    assert should_ignore("/work/foo.txt", ["", "*.log"]) is False
    assert should_ignore("/work/foo.txt", []) is False


def test_rule_table_lookup():
    """Test that a rule is registered for each of its extensions."""
    table = ExtensionRuleTable.from_config({
        "web": RuleConfig(extensions="js ts", command="echo {name}"),
    })

    assert "js" in table
    assert "ts" in table
    assert table.lookup("py") is None
    assert render_command(None, table, builtin_variables("/src/x.ts", "/src")) == "echo x"


def test_rule_table_last_write_wins():
    """Test that a later rule replaces an earlier one for shared extensions."""
    table = ExtensionRuleTable.from_config({
        "first": RuleConfig(extensions="md txt", command="first {name}"),
        "second": RuleConfig(extensions="txt", command="second {name}", extra_variables="echo"),
    })

    assert table.lookup("md").name == "first"
    assert table.lookup("txt").name == "second"
    assert table.command_for("txt") == Template("second {name}")
    assert table.variables_for("txt") == Template("echo")
    assert table.variables_for("md") is None
    assert len(table) == 2


def test_rule_table_describe():
    """Test the startup rule listing."""
    table = ExtensionRuleTable.from_config({
        "web": RuleConfig(extensions="ts js", command="echo {name}"),
        "notes": RuleConfig(extensions="md"),
    })

    assert list(table.describe()) == ["web (js ts) ⇒ echo {name}", "notes (md)"]


def test_render_prefers_cli_command():
    """Test command precedence and message rendering."""
    table = ExtensionRuleTable.from_config({
        "py": RuleConfig(extensions="py", command="python {path}"),
    })
    variables = builtin_variables("/src/app.py", "/src")

    message, command = render(Template("Changed {rpath}"), Template("pytest {rpath}"), table, variables)
    assert message == "Changed app.py"
    assert command == "pytest app.py"

    message, command = render(None, None, table, variables)
    assert message is None
    assert command == "python /src/app.py"


def test_render_without_rule_is_empty():
    """Test that no command and no rule renders an empty command."""
    message, command = render(Template("{path}"), None, ExtensionRuleTable(), builtin_variables("/a/b.c", "/a"))

    assert message == "/a/b.c"
    assert command == ""


def test_parse_duration():
    """Test human readable durations."""
    assert parse_duration("500ms") == pytest.approx(0.5)
    assert parse_duration("50us") == pytest.approx(0.00005)
    assert parse_duration("2s") == pytest.approx(2.0)
    assert parse_duration("1m 30s") == pytest.approx(90.0)
    assert parse_duration("1h") == pytest.approx(3600.0)
    assert parse_duration("1.5") == pytest.approx(1.5)

    for invalid in ("", "fast", "5 parsecs", "ms"):
        with pytest.raises(ValueError):
            parse_duration(invalid)


def test_settings_defaults(monkeypatch):
    """Test Settings defaults and environment overrides."""
    monkeypatch.delenv("ONCHANGE_DURATION", raising=False)
    assert Settings().duration == "500ms"
    assert Settings().template == "{path}"

    monkeypatch.setenv("ONCHANGE_DURATION", "2s")
    assert Settings().duration == "2s"


def test_load_rules_from_file():
    """Test loading an explicit config file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_file = Path(tmpdir) / "rules.toml"
        config_file.write_text(
            '[web]\n'
            'extensions = "js ts"\n'
            'command = "echo {name}"\n'
            '\n'
            '[docs]\n'
            'extensions = "md"\n'
            'extra_variables = "wc -l {path}"\n'
        )

        rules = load_rules(config_file)

        assert list(rules) == ["web", "docs"]
        assert rules["web"].command == "echo {name}"
        assert rules["web"].extra_variables is None
        assert rules["docs"].extra_variables == "wc -l {path}"


def test_load_rules_missing_file():
    """Test that an explicit missing config file is an error."""
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(ConfigError):
            load_rules(Path(tmpdir) / "missing.toml")


def test_load_rules_invalid():
    """Test that invalid TOML and invalid rules are reported."""
    with tempfile.TemporaryDirectory() as tmpdir:
        broken = Path(tmpdir) / "broken.toml"
        broken.write_text("[web\nextensions = ")
        with pytest.raises(ConfigError):
            load_rules(broken)

        no_extensions = Path(tmpdir) / "rule.toml"
        no_extensions.write_text('[web]\ncommand = "echo"\n')
        with pytest.raises(ConfigError):
            load_rules(no_extensions)

        not_a_table = Path(tmpdir) / "scalar.toml"
        not_a_table.write_text('web = "echo"\n')
        with pytest.raises(ConfigError):
            load_rules(not_a_table)


def test_load_rules_layered(monkeypatch):
    """Test that later config files override earlier ones key by key."""
    with tempfile.TemporaryDirectory() as tmpdir:
        system = Path(tmpdir) / "system.toml"
        system.write_text(
            '[web]\nextensions = "js"\ncommand = "system {name}"\n'
            '[docs]\nextensions = "md"\n'
        )
        local = Path(tmpdir) / "local.toml"
        local.write_text('[web]\ncommand = "local {name}"\n')
        missing = Path(tmpdir) / "missing.toml"

        monkeypatch.setattr("onchange.config.config_search_paths", lambda: [system, missing, local])
        rules = load_rules()

        assert rules["web"].extensions == "js"
        assert rules["web"].command == "local {name}"
        assert rules["docs"].extensions == "md"


def test_load_rules_no_files(monkeypatch):
    """Test that no config files yields no rules."""
    monkeypatch.setattr("onchange.config.config_search_paths", lambda: [Path("/nonexistent/onchange.toml")])

    assert load_rules() == {}


def test_models():
    """Test model creation."""
    notification = RawNotification(path="/a/b.txt", kind="modified", timestamp=1.0)
    decision = DispatchDecision(run=False, command="")

    assert notification.path == "/a/b.txt"
    assert "modified" in repr(notification)
    assert decision.delay == 0.0
    assert decision.run_async is False
