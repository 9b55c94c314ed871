"""Document extraction for orgsite.

The converter in ``renderers`` returns a complete HTML document and keeps
keyword declarations to itself. This module captures what the pipeline
actually needs (the body fragment and the declared keywords) by
overriding the converter's assembly and keyword steps for the duration of
a single conversion.

Key classes:
- Conversion: Body fragment plus the captured keyword pairs.
- OrgConverter: ContentConverter implementation around ``org_to_html``.
- DocumentExtractor: Reads a source file and builds its DocumentRecord.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from markupsafe import Markup

from .content import DocumentRecord
from .protocols import ContentConverter
from .renderers import intercept, org_to_html
from .utils import slugify


@dataclass
class Conversion:
    """Result of converting one document.

    Attributes:
        html: Body fragment, without the surrounding document.
        keywords: ``(key, value)`` pairs with lower-cased keys, last
            declared first.
    """

    html: str
    keywords: list[tuple[str, str]] = field(default_factory=list)


class OrgConverter:
    """Converts Org text, capturing the body fragment and keywords."""

    def convert(self, text: str) -> Conversion:
        """Convert Org text.

        Args:
            text: Org source text.

        Returns:
            Conversion with the body HTML and the declared keywords.

        Raises:
            ConversionError: If the source is malformed. The overrides are
                removed before the error reaches the caller.
        """
        captured: dict[str, str] = {}
        keywords: list[tuple[str, str]] = []

        def capture_body(body: str, info: dict[str, Any]) -> str:
            captured["html"] = body
            return body

        def capture_keyword(key: str, value: str) -> None:
            keywords.insert(0, (key.lower(), value))

        with intercept(template=capture_body, keyword=capture_keyword):
            org_to_html(text)
        return Conversion(html=captured.get("html", ""), keywords=keywords)


def build_metadata(keywords: list[tuple[str, str]]) -> dict[str, Any]:
    """Turn captured keyword pairs into the metadata mapping.

    The first pair seen for a key wins, and since pairs arrive last
    declared first, that is the value declared last in the source.
    """
    metadata: dict[str, Any] = {}
    for key, value in keywords:
        metadata.setdefault(key, value)
    return metadata


class DocumentExtractor:
    """Builds DocumentRecord objects from source files.

    Attributes:
        converter: ContentConverter used for the markup conversion.
    """

    def __init__(self, converter: ContentConverter | None = None):
        self.converter = converter or OrgConverter()

    def extract(self, source_path: str | os.PathLike[str]) -> DocumentRecord:
        """Read and convert one source file.

        Args:
            source_path: Path to the source file.

        Returns:
            DocumentRecord with metadata, ``slug`` and ``html`` filled in.
        """
        path = os.path.abspath(os.fspath(source_path))
        text = Path(path).read_text(encoding="utf-8")
        conversion = self.converter.convert(text)
        html = Markup(conversion.html)
        metadata = build_metadata(conversion.keywords)
        slug = slugify(metadata.get("title"), path)
        # Synthetic entries always come last.
        metadata.pop("slug", None)
        metadata.pop("html", None)
        metadata["slug"] = slug
        metadata["html"] = html
        return DocumentRecord(source_path=path, html=html, metadata=metadata)

