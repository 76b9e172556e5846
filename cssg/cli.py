"""Command-line interface for cssg.

This module defines the CLI commands using Click framework.
It provides commands for creating new projects, building sites, and running the development server.

Commands:
- create: Scaffold a new project from a bundled template.
- init: Initialize a project in the current directory.
- build: Build the site into the output directory.
- dev: Run development server with live reload.
- list: List the bundled templates.
- version: Print the installed version.
"""

from __future__ import annotations

from pathlib import Path

import click
import questionary

from . import __version__
from .config import ConfigError, ResolvedConfig, load_config
from .scaffold import ScaffoldError, create_project, init_project, list_templates
from .utils import relative_posix


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-v", "--version", prog_name="cssg")
def cli():
    """cssg static site generator."""


@cli.command()
@click.argument("name", required=False)
@click.option("-f", "--force", is_flag=True, help="Write into a non-empty directory")
@click.option(
    "-t",
    "--template",
    default=None,
    help="Starter template to use (see `cssg list`)",
)
def create(name: str | None, force: bool, template: str | None):
    """Scaffold a new cssg project."""
    if name is None:
        name = questionary.text(
            "Project name:",
            validate=lambda x: len(x.strip()) > 0 or "Project name cannot be empty",
            style=_questionary_style(),
        ).ask()
        if name is None:
            raise click.Abort()
        name = name.strip()
        if template is None:
            template = questionary.select(
                "Select template:",
                choices=list_templates(),
                default="basic",
                style=_questionary_style(),
            ).ask()
            if template is None:
                raise click.Abort()

    target = Path(name).resolve()
    try:
        written = create_project(target, template or "basic", force=force)
    except ScaffoldError as exc:
        raise click.ClickException(str(exc)) from None

    for path in written:
        click.echo(f"  created {path.relative_to(target)}")
    click.echo(click.style(f"New cssg site created at {target}", fg="green"))
    click.echo("Next steps:")
    click.echo(f"  cd {name}")
    click.echo("  cssg dev")


@cli.command()
def init():
    """Initialize a cssg project in the current directory."""
    project_root = Path.cwd()
    for path, created in init_project(project_root):
        rel_path = path.relative_to(project_root.resolve())
        if created:
            click.echo(f"  created {rel_path}")
        else:
            click.echo(click.style(f"  skipped {rel_path} (already exists)", fg="yellow"))
    click.echo(f"Initialized cssg project in {project_root}")


@cli.command()
def build():
    """Build the site into the output directory."""
    config = _load_project_config()
    from .build import BuildError, build_site

    try:
        result = build_site(config, "prod")
    except BuildError as exc:
        rel_path = relative_posix(exc.source_path, config.root) or exc.source_path
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


@cli.command()
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides cssg.yaml)",
)
def dev(port: int | None):
    """Run dev server with live reload."""
    config = _load_project_config()
    from .server import DevServer, DevServerError

    server = DevServer(config, port=port)
    try:
        server.start()
    except DevServerError as exc:
        raise click.ClickException(str(exc)) from None


@cli.command(name="list")
def list_command():
    """List the bundled starter templates."""
    for name in list_templates():
        click.echo(name)


@cli.command()
def version():
    """Print the cssg version."""
    click.echo(f"cssg {__version__}")


def _load_project_config() -> ResolvedConfig:
    """Load ``cssg.yaml`` from the working directory, exiting on errors."""
    try:
        return load_config(Path.cwd())
    except ConfigError as exc:
        click.echo(click.style("Invalid configuration:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {exc.path.name}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
