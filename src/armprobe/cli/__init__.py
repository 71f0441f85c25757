"""CLI entry point: Click group with global options."""

from __future__ import annotations

import logging

import click

from armprobe import __version__


@click.group()
@click.version_option(version=__version__, prog_name="armprobe")
@click.option(
    "--rules",
    "-r",
    type=click.Path(exists=True),
    help="Path to a YAML compatibility rules file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, rules: str | None, verbose: bool) -> None:
    """armprobe: server software inventory and ARM64/Graviton readiness."""
    ctx.ensure_object(dict)
    ctx.obj["rules_path"] = rules
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from armprobe.cli.catalog import catalog  # noqa: F811
    from armprobe.cli.detect import detect  # noqa: F811
    from armprobe.cli.history import history  # noqa: F811

    main.add_command(detect)
    main.add_command(catalog)
    main.add_command(history)


_register_commands()
