"""CLI command: armprobe catalog: list the applications armprobe knows about."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from armprobe.catalog.signatures import CATALOG
from armprobe.compat.classifier import CompatibilityClassifier
from armprobe.compat.loader import load_default_rules, load_rules

console = Console()


@click.command()
@click.option("--probes", is_flag=True, help="Show version probe commands.")
@click.pass_context
def catalog(ctx: click.Context, probes: bool) -> None:
    """List known applications and the rule that applies to each."""
    rules_path = ctx.obj.get("rules_path")
    rules = load_rules(rules_path) if rules_path else load_default_rules()
    classifier = CompatibilityClassifier(rules)

    table = Table(title=f"Application catalog (rules: {rules.name})")
    table.add_column("Key", style="bold")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Default version", justify="right")
    table.add_column("Rule")
    if probes:
        table.add_column("Version probes")

    for signature in CATALOG:
        verdict = classifier.classify(signature.key, signature.default_version)
        rule = verdict.matched_rule.version_pattern if verdict.matched_rule else "-"
        row = [
            signature.key,
            signature.label,
            signature.category.value,
            signature.default_version,
            rule,
        ]
        if probes:
            row.append("\n".join(signature.version_probes))
        table.add_row(*row)

    console.print(table)
