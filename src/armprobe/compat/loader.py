"""Load compatibility rule tables from YAML, resolving ``inherit`` references.

A rule file looks like::

    name: site
    inherit: [preset:graviton, ../shared/rules.yaml]
    rules:
      - application: gitlab_runner
        version_pattern: ">=15.0"

Own rules come first, then each parent's rules in the order listed. File
references are relative to the file that names them.
"""

from __future__ import annotations

import importlib.resources
from pathlib import Path

import yaml

from armprobe.compat.models import CompatRule, RuleSet

_PRESET_PREFIX = "preset:"

DEFAULT_PRESET = "graviton"


def load_rules(path: str | Path) -> RuleSet:
    """Load a rule table from a YAML file."""
    path = Path(path).resolve()
    return _load_document(
        path.read_text(encoding="utf-8"), origin=str(path), base=path.parent, chain=()
    )


def load_rules_from_string(text: str) -> RuleSet:
    """Parse a YAML rule table; file references resolve from the working directory."""
    return _load_document(text, origin="<string>", base=Path.cwd(), chain=())


def load_default_rules() -> RuleSet:
    """The built-in Graviton rule table."""
    return _load_ref(_PRESET_PREFIX + DEFAULT_PRESET, Path.cwd(), ())


def _load_document(text: str, origin: str, base: Path, chain: tuple[str, ...]) -> RuleSet:
    if origin in chain:
        raise ValueError("Circular rule inheritance: " + " -> ".join((*chain, origin)))
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"{origin}: rules YAML must be a mapping")
    chain = (*chain, origin)

    rules = [_parse_rule(entry, origin) for entry in data.get("rules") or []]

    parents = data.get("inherit") or []
    if isinstance(parents, str):
        parents = [parents]
    for ref in parents:
        rules.extend(_load_ref(str(ref), base, chain).rules)

    return RuleSet(
        name=str(data.get("name", "unnamed")),
        rules=tuple(rules),
        description=data.get("description", ""),
    )


def _parse_rule(entry: object, origin: str) -> CompatRule:
    if not isinstance(entry, dict) or "application" not in entry:
        raise ValueError(f"{origin}: every rule needs an 'application' key, got {entry!r}")
    return CompatRule(
        application=str(entry["application"]),
        # YAML reads a bare 6.0 as a float
        version_pattern=str(entry.get("version_pattern", "all")),
        notes=entry.get("notes", ""),
        upgrade_notes=entry.get("upgrade_notes", ""),
    )


def _load_ref(ref: str, base: Path, chain: tuple[str, ...]) -> RuleSet:
    if ref.startswith(_PRESET_PREFIX):
        name = ref[len(_PRESET_PREFIX) :]
        resource = importlib.resources.files("armprobe.compat.presets").joinpath(f"{name}.yaml")
        if not resource.is_file():
            raise ValueError(f"Unknown rule preset: {name}")
        return _load_document(resource.read_text(encoding="utf-8"), ref, base, chain)

    path = (base / ref).resolve()
    return _load_document(path.read_text(encoding="utf-8"), str(path), path.parent, chain)
