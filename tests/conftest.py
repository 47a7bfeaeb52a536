"""Test configuration and fixtures for Quire tests."""

import pytest
import tempfile
import shutil
import logging
from pathlib import Path
import yaml

@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)

@pytest.fixture(autouse=True)
def reset_quire_logger():
    """Drop handlers attached by Quire.setup_logging between tests."""
    yield
    logger = logging.getLogger('Quire')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

@pytest.fixture
def settings_dir(temp_dir):
    """A config directory holding a quire.yml settings file."""
    config_file = Path(temp_dir) / 'quire.yml'
    config_file.write_text(yaml.dump({
        'template_formats': ['md', 'html'],
        'data_deep_merge': False,
        'plugins': ['syntaxhighlight'],
    }))
    return temp_dir

@pytest.fixture
def module_dir(temp_dir):
    """A config directory holding a quire_config.py routine."""
    module_file = Path(temp_dir) / 'quire_config.py'
    module_file.write_text('''
from quire_pkg.filters import readable_date


def shout(value):
    return str(value).upper()


def configure(config):
    config.set_template_formats("njk, md")
    config.add_filter("readableDate", readable_date)
    config.add_filter("shout", shout)
''')
    return temp_dir

@pytest.fixture
def templates_dir(temp_dir):
    """Create a templates directory with a template using the registered filters."""
    templates_dir = Path(temp_dir) / 'templates'
    templates_dir.mkdir()

    post_template = templates_dir / 'post.njk'
    post_template.write_text("""<article>
    <time>{{ date|readableDate }}</time>
    {{ code|highlight('python') }}
</article>""")

    return str(templates_dir)

@pytest.fixture
def data_files(temp_dir):
    """Two data scopes: global site data and directory data overriding it."""
    site_data = Path(temp_dir) / 'site.yml'
    site_data.write_text(yaml.dump({
        'site': {'title': 'My Site', 'author': {'name': 'Jane'}},
        'tags': ['general'],
    }))

    dir_data = Path(temp_dir) / 'posts.json'
    dir_data.write_text('{"site": {"author": {"email": "jane@example.com"}}, "tags": ["posts"]}')

    return str(site_data), str(dir_data)
