"""
Configuration registration API for Quire.

A site's configuration routine receives a mutable SiteConfig, declares its
template formats, data merge policy, filters and plugins, and the engine then
freezes it into a ResolvedConfig that the templating pipeline reads.
"""

import logging
import os
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

import mistune
from jinja2 import Environment

from .merge import merge_data

# Formats the engine renders with a dedicated pipeline; anything else
# registered as a format is treated as a plain Jinja2 template.
NATIVE_FORMATS = ('html', 'md', 'njk')

logger = logging.getLogger('Quire')


class ConfigurationError(Exception):
    """Raised when a registration or a configuration source is invalid."""


def plugin_name(plugin: Callable) -> str:
    """Name a plugin is known by in the resolved configuration."""
    return getattr(plugin, 'plugin_name', None) or getattr(plugin, '__name__', repr(plugin))


class PluginRegistration(NamedTuple):
    name: str
    plugin: Callable
    options: Dict[str, Any]


class ResolvedConfig(NamedTuple):
    """Immutable configuration record handed to the templating pipeline."""

    template_formats: Tuple[str, ...]
    data_deep_merge: bool
    filters: MappingProxyType
    plugins: Tuple[str, ...]
    markdown_highlighter: Optional[Callable[[str, Optional[str]], str]] = None

    def is_template(self, path: str) -> bool:
        """Return True if the file at path would be processed as a template."""
        ext = os.path.splitext(path)[1].lstrip('.').lower()
        return bool(ext) and ext in self.template_formats

    def merge_data(self, *scopes: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Combine data scopes, lowest priority first, using the merge mode."""
        return merge_data(scopes, deep=self.data_deep_merge)

    def create_environment(self, loader=None, **kwargs) -> Environment:
        """Build a Jinja2 environment with every registered filter installed."""
        env = Environment(loader=loader, **kwargs)
        env.filters.update(self.filters)
        return env

    def create_markdown_parser(self):
        """Create a Mistune markdown parser that routes code blocks through the highlighter."""
        highlighter = self.markdown_highlighter

        class CustomRenderer(mistune.HTMLRenderer):
            def __init__(self):
                super().__init__(escape=False)

            def block_code(self, code, info=None):
                if highlighter is not None:
                    lang = info.split()[0] if info and info.strip() else None
                    # plain str: Markup would escape whatever mistune appends
                    return str(highlighter(code, lang))
                escaped_code = mistune.escape(code)
                return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>'.format(escaped_code)

        return mistune.create_markdown(
            renderer=CustomRenderer(),
            plugins=['table', 'task_lists', 'strikethrough']
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            'template_formats': list(self.template_formats),
            'data_deep_merge': self.data_deep_merge,
            'filters': sorted(self.filters),
            'plugins': list(self.plugins),
            'markdown_highlighter': self.markdown_highlighter is not None,
        }


class SiteConfig:
    """
    Mutable registration interface passed to a site's configuration routine.

    Every capability replaces earlier registrations of the same key, so
    running a routine twice leaves the same state as running it once.
    """

    DEFAULT_TEMPLATE_FORMATS = ['html', 'md', 'njk']

    def __init__(self):
        self.template_formats: List[str] = list(self.DEFAULT_TEMPLATE_FORMATS)
        self.data_deep_merge = False
        self.filters: Dict[str, Callable] = {}
        self.markdown_highlighter = None
        self._plugins: List[PluginRegistration] = []

    def set_template_formats(self, formats: Union[str, Iterable[str]]) -> None:
        """
        Declare which file extensions are templates.

        Args:
            formats: Sequence of extensions or a comma-separated string.
                Leading dots are ignored and duplicates collapse to the
                first occurrence.
        """
        if isinstance(formats, str):
            formats = formats.split(',')
        elif not isinstance(formats, (list, tuple)):
            raise ConfigurationError(
                f"Template formats must be a list or comma-separated string, got {formats!r}"
            )

        normalized = []
        for entry in formats:
            if not isinstance(entry, str):
                raise ConfigurationError(f"Template format must be a string, got {entry!r}")
            ext = entry.strip().lstrip('.').lower()
            if not ext:
                raise ConfigurationError(f"Empty template format in {formats!r}")
            if ext not in normalized:
                normalized.append(ext)

        for ext in normalized:
            if ext not in NATIVE_FORMATS:
                logger.debug(f"Format '{ext}' has no native renderer, processing it as a Jinja2 template")

        self.template_formats = normalized

    def set_data_deep_merge(self, flag: bool = True) -> None:
        self.data_deep_merge = bool(flag)

    def add_filter(self, name: str, func: Callable) -> None:
        """Register a named filter, replacing any filter already under that name."""
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"Filter name must be a non-empty string, got {name!r}")
        if not callable(func):
            raise ConfigurationError(f"Filter '{name}' is not callable")
        if name in self.filters and self.filters[name] is not func:
            logger.debug(f"Replacing filter '{name}'")
        self.filters[name] = func

    def add_plugin(self, plugin: Callable, **options) -> None:
        """Register a plugin; registering the same plugin again replaces its options."""
        if not callable(plugin):
            raise ConfigurationError(f"Plugin {plugin!r} is not callable")

        registration = PluginRegistration(plugin_name(plugin), plugin, dict(options))
        for index, existing in enumerate(self._plugins):
            if existing.plugin is plugin:
                self._plugins[index] = registration
                return
        self._plugins.append(registration)

    def set_markdown_highlighter(self, func: Optional[Callable[[str, Optional[str]], str]]) -> None:
        if func is not None and not callable(func):
            raise ConfigurationError("Markdown highlighter must be callable")
        self.markdown_highlighter = func

    @property
    def plugins(self) -> Tuple[PluginRegistration, ...]:
        return tuple(self._plugins)

    def resolve(self) -> ResolvedConfig:
        """Run registered plugins and freeze the configuration."""
        for registration in list(self._plugins):
            logger.debug(f"Applying plugin '{registration.name}' with options {registration.options}")
            registration.plugin(self, **registration.options)

        return ResolvedConfig(
            template_formats=tuple(self.template_formats),
            data_deep_merge=self.data_deep_merge,
            filters=MappingProxyType(dict(self.filters)),
            plugins=tuple(r.name for r in self._plugins),
            markdown_highlighter=self.markdown_highlighter,
        )


def build_config(*routines: Callable[[SiteConfig], Any]) -> ResolvedConfig:
    """Apply each configuration routine to a fresh SiteConfig and resolve it."""
    config = SiteConfig()
    for routine in routines:
        routine(config)
    return config.resolve()
