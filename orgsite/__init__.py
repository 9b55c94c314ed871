"""orgsite static site generator.

This package turns a tree of Org documents into HTML pages. Each document
is converted to an HTML fragment plus its declared keywords, rendered
through a Jinja2 content template, and written to a path computed from a
second, one-line output template.

The main entry point is the CLI module; the pipeline itself lives in
``orgsite.build``.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
