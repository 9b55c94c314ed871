"""Site generation for orgsite.

This module contains the generation pipeline: it resolves the templates,
locates the source documents, converts each of them and writes the
rendered pages to their computed output paths.

Key names:
- GeneratorConfig: Immutable configuration of one generation run.
- load_config: Builds a GeneratorConfig from defaults, orgsite.yaml and overrides.
- generate: Runs the pipeline.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .content import SourceLocator
from .extractors import DocumentExtractor
from .templates import DEFAULT_TEMPLATES_DIR, TemplateEngine
from .utils import as_directory, compile_pattern, legacy_join

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "orgsite.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "base_dir": None,
    "input_pattern": "org$",
    "input_exclude": "^$",
    "input_filter": None,
    "output": "output/{{ slug }}.html",
    "template": None,
    "template_dirs": None,
}

InputFilter = Callable[[dict[str, Any]], bool]


class ConfigError(ValueError):
    """Raised when the generator configuration is invalid."""


@dataclass(frozen=True)
class GeneratorConfig:
    """Configuration of one generation run.

    Attributes:
        base_dir: Root for source search and output, in directory form.
        input_pattern: Regex a source path must match.
        input_exclude: Regex a source path must not match.
        input_filter: Optional predicate over a document's variables; a
            falsy result skips the document before rendering.
        output: Template string producing the output path relative to base_dir.
        template: Name of the content template.
        template_dirs: Extra template directories, searched after
            ``base_dir/templates`` and before the built-in templates.
    """

    base_dir: str = field(default_factory=lambda: as_directory(os.getcwd()))
    input_pattern: str = DEFAULT_CONFIG["input_pattern"]
    input_exclude: str = DEFAULT_CONFIG["input_exclude"]
    input_filter: InputFilter | None = None
    output: str = DEFAULT_CONFIG["output"]
    template: str | None = None
    template_dirs: tuple[str, ...] = (DEFAULT_TEMPLATES_DIR,)

    @property
    def search_path(self) -> list[str]:
        """Template search path.

        The run's own templates directory comes first, then ``template_dirs``,
        then the built-in templates unless ``template_dirs`` already lists them.
        """
        dirs = [os.path.join(self.base_dir, "templates"), *self.template_dirs]
        if DEFAULT_TEMPLATES_DIR not in self.template_dirs:
            dirs.append(DEFAULT_TEMPLATES_DIR)
        return dirs


@dataclass
class GenerationResult:
    """Result of a generation run.

    Attributes:
        written: Output paths, in the order they were written.
        skipped: Source paths rejected by the input filter.
    """

    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _option_name(key: str) -> str:
    return key.replace("-", "_")


def load_config(
    base_dir: str | os.PathLike[str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> GeneratorConfig:
    """Build the configuration for a run.

    Values come from DEFAULT_CONFIG, then orgsite.yaml in the base directory
    (when present), then ``overrides``. Override values of None are ignored,
    so unset command-line options keep the lower-priority value. Option
    names may use dashes or underscores.

    Args:
        base_dir: Base directory; defaults to the current working directory.
        overrides: Caller-supplied options.

    Returns:
        GeneratorConfig with defaults applied.

    Raises:
        ConfigError: On unknown options or invalid patterns.
    """
    root = as_directory(os.path.abspath(os.fspath(base_dir)) if base_dir else os.getcwd())
    values = DEFAULT_CONFIG.copy()
    values.update(_load_config_file(root))
    for key, value in (overrides or {}).items():
        if value is not None:
            values[_option_name(key)] = value
    unknown = sorted(set(values) - set(DEFAULT_CONFIG))
    if unknown:
        raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")

    template_dirs = values["template_dirs"]
    if template_dirs is None:
        template_dirs = [DEFAULT_TEMPLATES_DIR]
    elif isinstance(template_dirs, (str, os.PathLike)):
        template_dirs = [template_dirs]
    dirs = tuple(os.path.join(root, os.fspath(d)) for d in template_dirs)

    for name in ("input_pattern", "input_exclude"):
        try:
            compile_pattern(values[name])
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    return GeneratorConfig(
        base_dir=root,
        input_pattern=values["input_pattern"],
        input_exclude=values["input_exclude"],
        input_filter=values["input_filter"],
        output=values["output"],
        template=values["template"],
        template_dirs=dirs,
    )


def _load_config_file(root: str) -> dict[str, Any]:
    """Load orgsite.yaml from the base directory.

    Args:
        root: Base directory in directory form.

    Returns:
        Options from the file with underscored names, or an empty dict.
    """
    config_path = Path(root) / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    loaded = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        return {}
    return {_option_name(str(k)): v for k, v in loaded.items()}


def generate(
    config: GeneratorConfig,
    extractor: DocumentExtractor | None = None,
) -> GenerationResult:
    """Generate the site described by ``config``.

    The content template is loaded before any source is read, so a missing
    or broken template aborts the run with nothing written. Sources are then
    processed one at a time. Any error aborts the run; pages written before
    the error stay on disk.

    Args:
        config: Run configuration.
        extractor: Optional custom document extractor.

    Returns:
        GenerationResult listing written and skipped files.

    Raises:
        ConfigError: If no content template is configured.
        TemplateNotFound: If a template cannot be resolved.
        jinja2.TemplateSyntaxError: If a template is malformed.
        ConversionError: If a source document cannot be converted.
        OSError: On filesystem failures.
    """
    if not config.template:
        raise ConfigError("No content template configured (set 'template').")

    engine = TemplateEngine(config.search_path)
    engine.add_template(config.template)

    extractor = extractor or DocumentExtractor()
    locator = SourceLocator(config.input_pattern, config.input_exclude)
    result = GenerationResult()
    for source in locator.locate(config.base_dir):
        record = extractor.extract(source)
        if config.input_filter is not None and not config.input_filter(record.variables):
            logger.debug("Skipped %s", source)
            result.skipped.append(source)
            continue
        rendered = engine.render(config.template, record.variables)
        relative = engine.render_string(config.output, record.metadata)
        target = legacy_join(config.base_dir, relative)
        _write_page(target, rendered)
        logger.info("Wrote %s", target)
        result.written.append(target)
    return result


def _write_page(target: str, rendered: str) -> None:
    """Write a rendered page, creating parent directories as needed.

    Args:
        target: Output file path.
        rendered: Rendered page content, written as-is.
    """
    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(rendered, encoding="utf-8", newline="")
