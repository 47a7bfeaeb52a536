"""
Built-in plugins for Quire.

A plugin is a callable taking the SiteConfig plus keyword options. It runs
once when the configuration is resolved and may register filters or hooks.
"""

import logging

import mistune
from markupsafe import Markup
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .config import ConfigurationError

logger = logging.getLogger('Quire')


def highlight_code(code, language=None, css_class='highlight', line_numbers=False):
    """Highlight code with Pygments, falling back to an escaped block for unknown languages."""
    lexer = None
    if language:
        try:
            lexer = get_lexer_by_name(language, stripall=False)
        except ClassNotFound:
            logger.debug(f"No Pygments lexer for language '{language}', leaving code unhighlighted")

    if lexer is None:
        return '<pre class="{}"><code>{}</code></pre>\n'.format(css_class, mistune.escape(code))

    formatter = HtmlFormatter(cssclass=css_class, linenos='table' if line_numbers else False)
    return highlight(code, lexer, formatter)


def stylesheet(style='default', css_class='highlight'):
    """Return the Pygments CSS rules for highlighted blocks."""
    try:
        formatter = HtmlFormatter(style=style, cssclass=css_class)
    except ClassNotFound:
        raise ConfigurationError(f"Unknown Pygments style: {style}")
    return formatter.get_style_defs(f'.{css_class}')


class Highlighter:
    """Callable used both as the `highlight` filter and as the markdown code block hook."""

    def __init__(self, css_class='highlight', line_numbers=False):
        self.css_class = css_class
        self.line_numbers = line_numbers

    def __call__(self, code, language=None):
        return Markup(highlight_code(code, language, self.css_class, self.line_numbers))

    def __eq__(self, other):
        if not isinstance(other, Highlighter):
            return NotImplemented
        return (self.css_class, self.line_numbers) == (other.css_class, other.line_numbers)

    def __hash__(self):
        return hash((self.css_class, self.line_numbers))

    def __repr__(self):
        return f"Highlighter(css_class={self.css_class!r}, line_numbers={self.line_numbers!r})"


def syntax_highlight(config, css_class='highlight', line_numbers=False):
    """Register Pygments syntax highlighting for templates and markdown code blocks."""
    highlighter = Highlighter(css_class=css_class, line_numbers=line_numbers)
    config.add_filter('highlight', highlighter)
    config.set_markdown_highlighter(highlighter)


syntax_highlight.plugin_name = 'syntaxhighlight'

PLUGINS = {
    syntax_highlight.plugin_name: syntax_highlight,
}


def get_plugin(name):
    """Look up a built-in plugin by name."""
    try:
        return PLUGINS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown plugin '{name}'. Available plugins: {', '.join(sorted(PLUGINS))}"
        )
