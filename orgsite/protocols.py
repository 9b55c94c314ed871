"""Protocol definitions for orgsite.

These protocols describe the two collaborators the generation pipeline
talks to, so either can be replaced (for example by a test double)
without touching the pipeline.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .extractors import Conversion


@runtime_checkable
class ContentConverter(Protocol):
    """Protocol for converting document source text to HTML."""

    @abstractmethod
    def convert(self, text: str) -> Conversion:
        """Convert source text.

        Args:
            text: Full contents of a source file.

        Returns:
            Conversion holding the body fragment and the declared keywords.

        Raises:
            ConversionError: If the source cannot be converted.
        """
        ...


@runtime_checkable
class TemplateRenderer(Protocol):
    """Protocol for rendering named templates and template strings."""

    @abstractmethod
    def render(self, name: str, variables: dict[str, Any]) -> str:
        """Render a template looked up by name."""
        ...

    @abstractmethod
    def render_string(self, template: str, variables: dict[str, Any]) -> str:
        """Render a one-off template string."""
        ...
