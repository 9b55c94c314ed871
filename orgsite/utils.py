"""Utility functions for orgsite.

This module contains small string and path helpers used by the generation
pipeline.

Key functions:
    slugify: Derive a path-safe slug from a title or a filename.
    legacy_join: Concatenate the base directory and a rendered output path.
    as_directory: Return a path in directory form (with a trailing separator).
    compile_pattern: Compile a filter regex, reporting bad patterns clearly.
"""

from __future__ import annotations

import os
import re

WHITESPACE_RE = re.compile(r"\s")


def slugify(title: str | None, fallback_path: str) -> str:
    """Derive a slug from a title, or from a filename when there is no title.

    The transform is deliberately minimal: take the file-name portion,
    drop the final extension, lower-case it and turn every whitespace
    character into a hyphen. Punctuation and accents are kept as-is.

    Args:
        title: Value of the ``title`` keyword, if the document declared one.
        fallback_path: Path of the source file.

    Returns:
        Non-empty slug string.

    Examples:
        >>> slugify(None, "/a/b/My Post.org")
        'my-post'

        >>> slugify("Hello World", "/a/b/ignored.org")
        'hello-world'
    """
    if title:
        slug = _slug_from(title)
        if slug:
            return slug
    return _slug_from(fallback_path) or "index"


def _slug_from(value: str) -> str:
    name = os.path.splitext(os.path.basename(value))[0]
    return WHITESPACE_RE.sub("-", name.lower())


def legacy_join(base_dir: str, relative: str) -> str:
    """Concatenate a base directory and a rendered relative path.

    No separator is inserted and nothing is normalized, so a base directory
    without a trailing separator runs into the relative path, and a relative
    path starting with a separator produces a double separator. Output
    layouts of existing sites must stay byte-identical.

    Args:
        base_dir: Base directory, normally in directory form.
        relative: Output path rendered from the output template.

    Returns:
        The two strings joined verbatim.
    """
    return f"{base_dir}{relative}"


def as_directory(path: str | os.PathLike[str]) -> str:
    """Return ``path`` with exactly one trailing separator."""
    text = os.fspath(path)
    if text.endswith(os.sep):
        return text
    return text + os.sep


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Compile a path filter regex.

    Args:
        pattern: Regular expression source or an already compiled pattern.

    Returns:
        Compiled pattern.

    Raises:
        ValueError: If the pattern is not a valid regular expression.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"Invalid pattern {pattern!r}: {exc}") from exc
