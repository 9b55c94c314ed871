"""Source discovery and document records for orgsite.

This module finds the source files a generation run works on and defines
the record built for each of them.

Key names:
- DocumentRecord: Dataclass holding one converted document and its metadata.
- SourceLocator: Walks a directory tree and filters paths by pattern.
- locate_sources: Functional shortcut around SourceLocator.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .utils import compile_pattern

# Entries that refer back to the directory itself or its parent.
SELF_REFERENCE_MARKERS = (".", "..")


@dataclass
class DocumentRecord:
    """One converted source document.

    Attributes:
        source_path: Absolute path of the source file.
        html: Body fragment produced by the converter.
        metadata: Keyword values, last declared first, followed by the
            synthetic ``slug`` and ``html`` entries.
    """

    source_path: str
    html: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def slug(self) -> str:
        return self.metadata["slug"]

    @property
    def variables(self) -> dict[str, Any]:
        """Variables exposed to the content template."""
        return {"post": self.metadata}


class SourceLocator:
    """Finds source files below a directory.

    A file is selected when its absolute path matches ``include`` and does
    not match ``exclude`` (both via ``re.search``). Directories are walked
    with an explicit stack, so deep trees do not hit the recursion limit.

    Attributes:
        include: Compiled inclusion pattern.
        exclude: Compiled exclusion pattern.
    """

    def __init__(self, include: str | re.Pattern[str], exclude: str | re.Pattern[str]):
        self.include = compile_pattern(include)
        self.exclude = compile_pattern(exclude)

    def accepts(self, path: str) -> bool:
        """Return True if ``path`` passes both filters."""
        return bool(self.include.search(path)) and not self.exclude.search(path)

    def locate(self, directory: str | os.PathLike[str]) -> list[str]:
        """Return every qualifying file below ``directory``.

        Symlinked directories are followed. Each real directory is walked
        once, so a link pointing back up the tree cannot loop; a file
        reachable through several links is reported under the first path
        that reaches it.

        Args:
            directory: Directory to search.

        Returns:
            Sorted list of absolute file paths.

        Raises:
            OSError: If a directory cannot be listed.
        """
        root = Path(os.path.abspath(directory))
        found: list[str] = []
        visited: set[Path] = set()
        pending = [root]
        while pending:
            current = pending.pop()
            real = current.resolve()
            if real in visited:
                continue
            visited.add(real)
            for path in sorted(current.iterdir()):
                if path.is_dir():
                    if not _is_self_reference(path.name):
                        pending.append(path)
                elif path.is_file() and self.accepts(str(path)):
                    found.append(str(path))
        return sorted(found)


def _is_self_reference(name: str) -> bool:
    # iterdir() never yields these names. Link loops are stopped by the
    # visited set in SourceLocator.locate.
    return name in SELF_REFERENCE_MARKERS


def locate_sources(
    directory: str | os.PathLike[str],
    include_pattern: str | re.Pattern[str],
    exclude_pattern: str | re.Pattern[str],
) -> list[str]:
    """Locate source files below ``directory``.

    Args:
        directory: Directory to search.
        include_pattern: Regex a path must match.
        exclude_pattern: Regex a path must not match.

    Returns:
        Sorted list of absolute file paths.
    """
    return SourceLocator(include_pattern, exclude_pattern).locate(directory)
