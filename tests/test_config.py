"""Tests for the configuration registration API and the default routine."""

import pytest
import os
from datetime import date

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from quire_pkg.config import ConfigurationError, SiteConfig, build_config
from quire_pkg.filters import readable_date
from quire_pkg.plugins import Highlighter, syntax_highlight
from quire_pkg.registrar import configure


def configure_without_extras(config):
    config.set_template_formats(['md', 'html', 'css', 'njk'])
    config.add_filter('readableDate', readable_date)


class TestSiteConfig:
    """Test cases for SiteConfig registrations."""

    def test_defaults(self):
        """Test engine defaults before any routine runs."""
        resolved = SiteConfig().resolve()

        assert resolved.template_formats == ('html', 'md', 'njk')
        assert resolved.data_deep_merge is False
        assert dict(resolved.filters) == {}
        assert resolved.plugins == ()
        assert resolved.markdown_highlighter is None

    def test_template_formats_normalized(self):
        """Test dots, case, whitespace and duplicates are normalized in order."""
        config = SiteConfig()
        config.set_template_formats(['.MD', 'html ', 'md', 'css'])

        assert config.template_formats == ['md', 'html', 'css']

    def test_template_formats_comma_string(self):
        """Test a comma-separated string is accepted."""
        config = SiteConfig()
        config.set_template_formats('njk, md,html')

        assert config.template_formats == ['njk', 'md', 'html']

    def test_template_formats_replace(self):
        """Test a second call replaces the first."""
        config = SiteConfig()
        config.set_template_formats(['md', 'html'])
        config.set_template_formats(['njk'])

        assert config.template_formats == ['njk']

    @pytest.mark.parametrize('formats', [['md', ''], ['md', 3], ' , '])
    def test_template_formats_invalid(self, formats):
        """Test empty or non-string entries are rejected."""
        with pytest.raises(ConfigurationError):
            SiteConfig().set_template_formats(formats)

    def test_add_filter_replaces_by_name(self):
        """Test registering a filter name twice keeps the last function."""
        config = SiteConfig()
        config.add_filter('readableDate', str)
        config.add_filter('readableDate', readable_date)

        assert config.filters == {'readableDate': readable_date}

    def test_add_filter_invalid(self):
        """Test invalid filter registrations are rejected."""
        config = SiteConfig()
        with pytest.raises(ConfigurationError, match="not callable"):
            config.add_filter('readableDate', 'nope')
        with pytest.raises(ConfigurationError, match="non-empty string"):
            config.add_filter('', readable_date)

    def test_add_plugin_deduplicates(self):
        """Test registering the same plugin twice keeps one entry with the latest options."""
        config = SiteConfig()
        config.add_plugin(syntax_highlight)
        config.add_plugin(syntax_highlight, line_numbers=True)

        assert len(config.plugins) == 1
        assert config.plugins[0].name == 'syntaxhighlight'
        assert config.plugins[0].options == {'line_numbers': True}

    def test_add_plugin_not_callable(self):
        """Test non-callable plugins are rejected."""
        with pytest.raises(ConfigurationError, match="not callable"):
            SiteConfig().add_plugin('syntaxhighlight')

    def test_resolve_runs_plugins(self):
        """Test plugins register their filters and hooks at resolve time."""
        config = SiteConfig()
        config.add_plugin(syntax_highlight, css_class='code')

        assert 'highlight' not in config.filters
        resolved = config.resolve()

        assert resolved.filters['highlight'] == Highlighter(css_class='code')
        assert resolved.markdown_highlighter == Highlighter(css_class='code')

    def test_plugin_named_by_function(self):
        """Test plugins without a plugin_name attribute use their function name."""
        def shortcodes(config):
            config.add_filter('upper', str.upper)

        resolved = build_config(lambda config: config.add_plugin(shortcodes))

        assert resolved.plugins == ('shortcodes',)
        assert resolved.filters['upper'] is str.upper


class TestDefaultRoutine:
    """Test cases for the built-in configure() routine."""

    def test_template_formats(self):
        """Test the registered extensions and their order."""
        assert build_config(configure).template_formats == ('md', 'html', 'css', 'njk')

    def test_deep_merge_enabled(self):
        """Test the routine turns on deep merging."""
        assert build_config(configure).data_deep_merge is True

    def test_deep_merge_off_without_registration(self):
        """Test routines that do not enable deep merging keep the shallow default."""
        assert build_config(configure_without_extras).data_deep_merge is False

    def test_readable_date_filter(self):
        """Test readableDate is registered under its fixed name."""
        resolved = build_config(configure)

        assert resolved.filters['readableDate'] is readable_date
        assert resolved.filters['readableDate'](date(2021, 1, 1)) == readable_date(date(2021, 1, 1))

    def test_single_highlight_plugin(self):
        """Test exactly one syntax highlighting plugin is registered."""
        assert build_config(configure).plugins == ('syntaxhighlight',)

    def test_no_plugins_without_registration(self):
        """Test routines without plugin registrations resolve with no plugins."""
        resolved = build_config(configure_without_extras)

        assert resolved.plugins == ()
        assert 'highlight' not in resolved.filters

    def test_running_twice_gives_same_config(self):
        """Test applying the routine twice does not accumulate registrations."""
        config = SiteConfig()
        configure(config)
        configure(config)
        twice = config.resolve()

        assert twice == build_config(configure)
        assert twice.plugins == ('syntaxhighlight',)
        assert twice.template_formats == ('md', 'html', 'css', 'njk')

    def test_resolve_twice_is_stable(self):
        """Test resolving the same SiteConfig again gives an equal record."""
        config = SiteConfig()
        configure(config)

        assert config.resolve() == config.resolve()


class TestResolvedConfig:
    """Test cases for the frozen configuration record."""

    def test_immutable(self):
        """Test the record and its filter mapping cannot be changed."""
        resolved = build_config(configure)

        with pytest.raises(AttributeError):
            resolved.data_deep_merge = False
        with pytest.raises(TypeError):
            resolved.filters['other'] = str

    def test_is_template(self):
        """Test the extension predicate."""
        resolved = build_config(configure)

        assert resolved.is_template('posts/hello.md')
        assert resolved.is_template('assets/STYLE.CSS')
        assert resolved.is_template('layouts/base.njk')
        assert not resolved.is_template('assets/app.js')
        assert not resolved.is_template('Makefile')

    def test_merge_data_uses_merge_mode(self):
        """Test merge_data follows the configured merge flag."""
        scopes = ({'site': {'title': 'Site', 'lang': 'en'}}, {'site': {'title': 'Post'}})

        assert build_config(configure).merge_data(*scopes) == {'site': {'title': 'Post', 'lang': 'en'}}
        assert build_config(configure_without_extras).merge_data(*scopes) == {'site': {'title': 'Post'}}

    def test_create_environment_installs_filters(self):
        """Test the Jinja2 environment can call registered filters."""
        env = build_config(configure).create_environment()
        template = env.from_string('{{ when|readableDate }}')

        assert template.render(when=date(2021, 1, 1)) == readable_date(date(2021, 1, 1))

    def test_markdown_parser_highlights_code(self):
        """Test fenced code goes through the highlighter when the plugin is loaded."""
        parser = build_config(configure).create_markdown_parser()
        html = parser("```python\nprint('hi')\n```\n")

        assert '<div class="highlight">' in html
        assert '<span' in html

    def test_markdown_parser_without_highlighter(self):
        """Test fenced code is escaped into a plain block without the plugin."""
        parser = build_config(configure_without_extras).create_markdown_parser()
        html = parser("```\n<b>bold</b>\n```\n")

        assert '<pre style="white-space: pre-wrap;"><code>' in html
        assert '&lt;b&gt;' in html

    def test_as_dict(self):
        """Test the serializable summary."""
        assert build_config(configure).as_dict() == {
            'template_formats': ['md', 'html', 'css', 'njk'],
            'data_deep_merge': True,
            'filters': ['highlight', 'readableDate'],
            'plugins': ['syntaxhighlight'],
            'markdown_highlighter': True,
        }
