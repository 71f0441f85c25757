"""Tests for compatibility rule YAML loading and inheritance."""

from pathlib import Path

import pytest

from armprobe.compat.loader import load_default_rules, load_rules, load_rules_from_string


def test_load_simple_rules(simple_rules_path: Path):
    rules = load_rules(simple_rules_path)
    assert rules.name == "simple-test"
    assert len(rules.rules) == 2
    assert rules.rules[0].application == "redis"
    assert rules.rules[0].version_pattern == "all"
    assert rules.rules[1].version_pattern == "none"


def test_load_rules_with_inheritance(custom_rules_path: Path):
    rules = load_rules(custom_rules_path)
    assert rules.name == "custom-graviton"
    # Own rules come first, then the inherited preset
    assert rules.rules[0].application == "gitlab_runner"
    assert rules.rules[1].application == "jenkins"
    inherited = [r.application for r in rules.rules[2:]]
    assert "aerospike" in inherited
    assert "jenkins" in inherited


def test_default_rules():
    rules = load_default_rules()
    assert rules.name == "graviton"
    by_app = {r.application: r for r in rules.rules}
    assert by_app["aerospike"].version_pattern == ">=6"
    assert by_app["aerospike"].upgrade_notes


def test_numeric_pattern_read_as_string():
    rules = load_rules_from_string(
        """
name: pinned
rules:
  - application: legacy
    version_pattern: 6.0
"""
    )
    assert rules.rules[0].version_pattern == "6.0"


def test_single_inherit_string():
    rules = load_rules_from_string("name: x\ninherit: preset:graviton\n")
    assert rules.rules == load_default_rules().rules


def test_non_mapping_rejected():
    with pytest.raises(ValueError):
        load_rules_from_string("- just\n- a list\n")


def test_circular_inheritance(tmp_path: Path):
    a = tmp_path / "a.yaml"
    b = tmp_path / "b.yaml"
    a.write_text(f"name: a\ninherit: [{b}]\n")
    b.write_text(f"name: b\ninherit: [{a}]\n")
    with pytest.raises(ValueError, match="Circular"):
        load_rules(a)


def test_shared_parent_is_not_circular(tmp_path: Path):
    # Two parents that both inherit the same preset
    (tmp_path / "left.yaml").write_text("name: left\ninherit: [preset:graviton]\n")
    (tmp_path / "right.yaml").write_text("name: right\ninherit: [preset:graviton]\n")
    site = tmp_path / "site.yaml"
    site.write_text("name: site\ninherit: [left.yaml, right.yaml]\n")

    rules = load_rules(site)
    assert len(rules.rules) == 2 * len(load_default_rules().rules)


def test_relative_inherit_resolves_from_including_file(tmp_path: Path):
    shared = tmp_path / "shared"
    shared.mkdir()
    (shared / "base.yaml").write_text(
        "name: base\nrules:\n  - application: legacydb\n    version_pattern: none\n"
    )
    site_dir = tmp_path / "site"
    site_dir.mkdir()
    site = site_dir / "rules.yaml"
    site.write_text("name: site\ninherit: [../shared/base.yaml]\n")

    rules = load_rules(site)
    assert [r.application for r in rules.rules] == ["legacydb"]


def test_unknown_preset():
    with pytest.raises(ValueError, match="Unknown rule preset"):
        load_rules_from_string("name: x\ninherit: [preset:nope]\n")


def test_rule_without_application():
    with pytest.raises(ValueError, match="application"):
        load_rules_from_string("name: x\nrules:\n  - version_pattern: all\n")
