"""Template resolution and rendering for orgsite.

This module uses Jinja2 to render the content template and the
output-path template. Templates are looked up through an ordered list of
search directories; the first plain file with the requested name wins.

Key names:
- resolve_template: Find a template file in an ordered search path.
- SearchPathLoader: Jinja2 loader that resolves every requested name,
  including imports, through resolve_template.
- TemplateEngine: Owns the Jinja2 environment for a generation run.
- TemplateNotFound: Raised when no search directory has the template.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import BaseLoader, Environment, Template, select_autoescape
from jinja2.loaders import split_template_path

__all__ = [
    "DEFAULT_TEMPLATES_DIR",
    "SearchPathLoader",
    "TemplateEngine",
    "TemplateNotFound",
    "resolve_template",
]

# Templates shipped with the package
DEFAULT_TEMPLATES_DIR = str(Path(__file__).resolve().parent / "templates" / "default")


class TemplateNotFound(jinja2.TemplateNotFound):
    """No directory in the search path holds a file with the requested name.

    Attributes:
        name: Requested template name.
        search_dirs: Directories that were searched, in order.
    """

    def __init__(self, name: str, search_dirs: Sequence[str] = ()):
        self.search_dirs = list(search_dirs)
        if self.search_dirs:
            message = f"{name} (searched: {', '.join(self.search_dirs)})"
        else:
            message = f"{name} (empty search path)"
        super().__init__(name, message)


def resolve_template(search_dirs: Sequence[str | os.PathLike[str]], name: str) -> str:
    """Locate a template file.

    Directories are tried in order. A missing entry or an entry that is a
    directory is skipped; the first plain file is returned.

    Args:
        search_dirs: Ordered directories to search.
        name: Template name, relative to each directory.

    Returns:
        Absolute path of the first matching file.

    Raises:
        TemplateNotFound: If no directory holds a plain file named ``name``.
    """
    for directory in search_dirs:
        candidate = Path(directory) / name
        if candidate.is_file():
            return os.path.abspath(candidate)
    raise TemplateNotFound(name, [os.fspath(d) for d in search_dirs])


class SearchPathLoader(BaseLoader):
    """Jinja2 loader backed by resolve_template.

    Jinja2 calls ``get_source`` for the first ``get_template`` of a name and
    for every ``{% import %}``, ``{% include %}`` and ``{% extends %}`` it
    meets while rendering, so imports resolve through the same search path.

    Attributes:
        search_dirs: Ordered directories to search.
    """

    def __init__(self, search_dirs: Sequence[str | os.PathLike[str]]):
        self.search_dirs = [os.fspath(d) for d in search_dirs]

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str, Callable[[], bool]]:
        try:
            pieces = split_template_path(template)
        except jinja2.TemplateNotFound:
            # Names escaping the search directories never resolve.
            raise TemplateNotFound(template, self.search_dirs) from None
        path = resolve_template(self.search_dirs, "/".join(pieces))
        source = Path(path).read_text(encoding="utf-8")
        mtime = os.path.getmtime(path)

        def uptodate() -> bool:
            try:
                return os.path.getmtime(path) == mtime
            except OSError:
                return False

        return source, path, uptodate


class TemplateEngine:
    """Template rendering engine using Jinja2.

    One engine lives for a whole generation run. Templates loaded through it,
    directly or by import, stay cached in its environment.

    Attributes:
        search_dirs: Ordered template search directories.
        env: Jinja2 environment.
    """

    def __init__(self, search_dirs: Sequence[str | os.PathLike[str]]):
        """Initialize the template engine.

        Args:
            search_dirs: Ordered template search directories.
        """
        self.search_dirs = [os.fspath(d) for d in search_dirs]
        self.env = Environment(
            loader=SearchPathLoader(self.search_dirs),
            autoescape=select_autoescape(["html", "xml"], default_for_string=False),
            keep_trailing_newline=True,
        )

    def add_template(self, name: str) -> Template:
        """Resolve, compile and cache a template.

        Args:
            name: Template name.

        Returns:
            The compiled template.

        Raises:
            TemplateNotFound: If the template cannot be resolved.
            jinja2.TemplateSyntaxError: If the template does not compile.
        """
        return self.env.get_template(name)

    def render(self, name: str, variables: dict[str, Any]) -> str:
        """Render a template by name.

        Args:
            name: Template name.
            variables: Variables available in the template.

        Returns:
            Rendered text.
        """
        return self.env.get_template(name).render(**variables)

    def render_string(self, template: str, variables: dict[str, Any]) -> str:
        """Render a template string.

        Args:
            template: Template string to render.
            variables: Variables available in the template.

        Returns:
            Rendered string.
        """
        tmpl = self.env.from_string(template)
        return tmpl.render(**variables)
