"""Default site configuration routine."""

from .filters import readable_date
from .plugins import syntax_highlight


def configure(config):
    # css has no native renderer; listing it makes stylesheets Jinja2 templates
    config.set_template_formats(['md', 'html', 'css', 'njk'])

    config.set_data_deep_merge(True)

    config.add_filter('readableDate', readable_date)

    config.add_plugin(syntax_highlight)
