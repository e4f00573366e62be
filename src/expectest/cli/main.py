"""expectest CLI entry point."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from expectest import __version__

console = Console()


@click.group()
@click.version_option(__version__, prog_name="expectest")
def cli() -> None:
    """expectest - expressive expectations for pytest."""
    pass


@cli.command()
def init() -> None:
    """Create an expectest.yaml in the current directory."""
    config_file = Path.cwd() / "expectest.yaml"
    if config_file.exists():
        console.print(f"[yellow]-[/yellow] {config_file.name} already exists")
        return

    config_file.write_text(
        """\
# expectest configuration
version: "0.1"

# Enable verbose debug output (also: EXPECTEST_DEBUG=1)
# debug_mode: false

diff:
  # Attach structured added/removed diffs to equality failures
  # (also: EXPECTEST_ENHANCED_DIFF=1)
  # enhanced: false

  # Max length of a value repr in failure messages
  # max_repr_length: 100

# Modules imported to register specs with register_spec()
# spec_modules:
#   - myapp.specs
"""
    )
    console.print(f"[green]✓[/green] Created {config_file.name}")


@cli.command()
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
def config(project: Path | None) -> None:
    """Show the current configuration."""
    from expectest.config import load_config

    cfg = load_config(project_root=project or Path.cwd())
    console.print(Panel(cfg.model_dump_json(indent=2), title="expectest Config"))


@cli.command()
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
def specs(project: Path | None) -> None:
    """List the specs registered by the configured spec modules."""
    from expectest.specs import get_registry

    _load_specs(project)

    registry = get_registry()
    names = registry.names()
    if not names:
        console.print("[dim]No specs registered[/dim]")
        return

    table = Table(title="Registered specs")
    table.add_column("Name")
    table.add_column("Schema")
    for name in names:
        schema = registry.get(name).schema
        table.add_row(name, getattr(schema, "__name__", repr(schema)))
    console.print(table)


# JSON values such as -1 must not be taken for options
@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("spec")
@click.argument("value")
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
def explain(spec: str, value: str, project: Path | None) -> None:
    """Check a JSON VALUE against the registered SPEC."""
    from expectest.diagnostics import UsageError
    from expectest.specs import get_registry

    _load_specs(project)

    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON:[/red] {e}")
        raise SystemExit(1)

    try:
        explanation = get_registry().explain(spec, data)
    except UsageError as e:
        console.print(f"[red]✗[/red] {e}")
        raise SystemExit(1)

    if explanation is None:
        console.print(f"[green]✓[/green] {value} conforms to {spec}")
    else:
        console.print(Panel(explanation, title=f"[red]{spec}[/red]", border_style="red"))
        raise SystemExit(1)


def _load_specs(project: Path | None) -> None:
    import sys

    from expectest.config import load_config, load_spec_modules

    project_root = project or Path.cwd()
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    cfg = load_config(project_root=project_root)
    try:
        load_spec_modules(cfg)
    except ImportError as e:
        console.print(f"[red]Error loading spec modules:[/red] {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
