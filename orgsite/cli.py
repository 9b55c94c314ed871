"""Command-line interface for orgsite.

This module defines the CLI commands using the Click framework.

Commands:
- build: Generate the site from the Org sources under a base directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from jinja2 import TemplateSyntaxError

from . import __version__


@click.group()
@click.version_option(version=__version__, prog_name="orgsite")
def cli():
    """orgsite static site generator."""


@cli.command()
@click.option(
    "--base-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Root for source search and output (default: current directory)",
)
@click.option("--input-pattern", default=None, help="Regex a source path must match")
@click.option("--input-exclude", default=None, help="Regex a source path must not match")
@click.option("--output", default=None, help="Output path template, relative to the base dir")
@click.option("--template", default=None, help="Content template name")
@click.option(
    "--template-dir",
    "template_dirs",
    multiple=True,
    help="Additional template directory (repeatable)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every written file")
def build(
    base_dir: Path | None,
    input_pattern: str | None,
    input_exclude: str | None,
    output: str | None,
    template: str | None,
    template_dirs: tuple[str, ...],
    verbose: bool,
):
    """Generate the site into its output paths."""
    from .build import ConfigError, generate, load_config
    from .renderers import ConversionError
    from .templates import TemplateNotFound

    _configure_logging(verbose)
    overrides = {
        "input_pattern": input_pattern,
        "input_exclude": input_exclude,
        "output": output,
        "template": template,
        "template_dirs": list(template_dirs) or None,
    }
    try:
        config = load_config(base_dir, overrides)
        result = generate(config)
    except TemplateSyntaxError as exc:
        _fail(
            "Template syntax error:",
            f"  File: {exc.filename or exc.name or '<string>'}",
            f"  Line: {exc.lineno}",
            f"  Error: {exc.message}",
        )
    except TemplateNotFound as exc:
        _fail("Template not found:", f"  Name: {exc.name}", f"  Error: {exc.message}")
    except FileNotFoundError as exc:
        _fail("File not found:", f"  File: {exc.filename}", f"  Error: {exc.strerror}")
    except ConversionError as exc:
        _fail("Conversion failed:", f"  Error: {exc}")
    except ConfigError as exc:
        _fail("Invalid configuration:", f"  Error: {exc}")
    click.echo(f"Wrote {len(result.written)} pages under {config.base_dir}")


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    # basicConfig is a no-op once the root logger has handlers.
    logging.getLogger("orgsite").setLevel(level)


def _fail(headline: str, *details: str) -> None:
    """Print a styled error report to stderr and exit with status 1."""
    click.echo(click.style(headline, fg="red", bold=True), err=True)
    for line in details:
        click.echo(click.style(line, fg="yellow"), err=True)
    raise SystemExit(1)


def main():
    """Entry point for the CLI application."""
    cli()
