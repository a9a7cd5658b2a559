"""Tests for the capability registry and YAML rule loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from toolrelay.ai.tools.errors import ConfigurationError
from toolrelay.ai.tools.registry import DEFAULT_RULES, CapabilityRegistry, RedirectionRule, load_rules
from toolrelay.ai.tools.transforms import TransformFamily


def test_default_edit_file_rule() -> None:
    registry = CapabilityRegistry.with_defaults()

    rule = registry.lookup("edit_file")

    assert rule is not None
    assert rule.target_backend_kind == "filesystem"
    assert rule.target_operation == "write_file"
    assert rule.transform_input({"path": "f.txt", "file_text": "hi"}) == {"path": "f.txt", "content": "hi"}


def test_lookup_is_pure() -> None:
    registry = CapabilityRegistry.with_defaults()

    for tool in registry.redirectable_tools():
        assert registry.lookup(tool) is registry.lookup(tool)
    assert registry.lookup("unknown_tool") is None


def test_default_table_contents() -> None:
    registry = CapabilityRegistry.with_defaults()

    assert len(registry) == len(DEFAULT_RULES) == 10
    assert registry.redirectable_tools()[:3] == ["edit_file", "create_file", "write_to_file"]
    assert registry.lookup("bash").target_backend_kind == "shell"
    assert registry.lookup("rename_file").transform is TransformFamily.MOVE
    assert "delete_file" in registry


def test_duplicate_source_tool_fails_at_load() -> None:
    rule = RedirectionRule("bash", "shell", "run_command", TransformFamily.COMMAND)

    with pytest.raises(ConfigurationError) as excinfo:
        CapabilityRegistry([rule, rule])

    assert excinfo.value.tool_name == "bash"


def test_preferred_backend_defaults_to_kind() -> None:
    rule = RedirectionRule("bash", "shell", "run_command", TransformFamily.COMMAND)

    assert rule.preferred_backend_id == "shell"
    assert rule.to_dict()["family"] == "command"


def test_load_rules_from_yaml(tmp_path: Path) -> None:
    config = tmp_path / "rules.yaml"
    config.write_text(
        "redirections:\n"
        "  - source: bash\n"
        "    backend: shell\n"
        "    operation: exec\n"
        "    family: command\n"
        "    preferred_backend: zsh-server\n"
        "  - source: read_file\n"
        "    backend: filesystem\n"
        "    operation: read_file\n"
        "    family: read\n",
        encoding="utf-8",
    )

    registry = load_rules(config)

    assert registry.redirectable_tools() == ["bash", "read_file"]
    bash = registry.lookup("bash")
    assert bash.target_operation == "exec"
    assert bash.preferred_backend_id == "zsh-server"


def test_load_rules_rejects_unknown_family(tmp_path: Path) -> None:
    config = tmp_path / "rules.yaml"
    config.write_text(
        "redirections:\n  - {source: bash, backend: shell, operation: exec, family: teleport}\n",
        encoding="utf-8",
    )

    with pytest.raises(ConfigurationError, match="unknown family"):
        load_rules(config)


def test_load_rules_rejects_missing_keys(tmp_path: Path) -> None:
    config = tmp_path / "rules.yaml"
    config.write_text("redirections:\n  - {source: bash, backend: shell}\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="operation, family"):
        load_rules(config)


def test_load_rules_reports_duplicates(tmp_path: Path) -> None:
    config = tmp_path / "rules.yaml"
    entry = "  - {source: bash, backend: shell, operation: exec, family: command}\n"
    config.write_text("redirections:\n" + entry + entry, encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Duplicate"):
        load_rules(config)


def test_load_rules_rejects_invalid_yaml(tmp_path: Path) -> None:
    config = tmp_path / "rules.yaml"
    config.write_text("redirections: [\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="not valid YAML"):
        load_rules(config)


def test_load_rules_requires_redirections_list(tmp_path: Path) -> None:
    config = tmp_path / "rules.yaml"
    config.write_text("rules: []\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_rules(config)


def test_load_rules_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Unable to read"):
        load_rules(tmp_path / "absent.yaml")
