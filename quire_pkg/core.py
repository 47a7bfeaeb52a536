import os
import json
import locale
import logging
import importlib.util
from datetime import datetime

import yaml
from jinja2 import FileSystemLoader

from .config import ConfigurationError, SiteConfig
from .registrar import configure as default_configure
from .settings import QuireSettings

# Site configuration modules, in order of preference
CONFIG_MODULES = ['quire_config.py', '.quire.py']


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Loaded configuration from",
            "Using configuration module",
            "Using built-in configuration",
            "Configuration resolved in",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def load_config_module(path):
    """Import a configuration module from path and return its configure() routine."""
    module_name = '_quire_site_config_' + os.path.splitext(os.path.basename(path))[0].lstrip('.')
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot load configuration module {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigurationError(f"Error importing configuration module {path}: {e}") from e

    routine = getattr(module, 'configure', None)
    if not callable(routine):
        raise ConfigurationError(f"Configuration module {path} does not define a configure(config) function")
    return routine


class Quire:
    """
    Engine facade: loads the site's settings and configuration routine and
    builds the resolved configuration once.
    """

    def __init__(self, config_dir=None, configure=None, settings=None, log_dir=None, verbose=False):
        self.config_dir = config_dir or os.getcwd()
        self.log_dir = log_dir
        self.verbose = verbose
        self.setup_logging()

        if not os.path.isdir(self.config_dir):
            raise FileNotFoundError(f"Configuration directory not found: {self.config_dir}")

        self.settings_loader = QuireSettings(self.config_dir)
        self.settings = self.settings_loader.load_settings()
        if settings:
            self.settings = self.settings_loader.merge_with_args(settings)
            self.settings_loader.settings = self.settings

        self.apply_locale(self.settings.get('locale'))

        self.config_module_path = None
        self.routine = configure or self.find_routine()

        start_time = datetime.now()
        self.config = self.build_config()
        elapsed = (datetime.now() - start_time).total_seconds()
        self.logger.info(f"Configuration resolved in {elapsed:.6f} seconds.")

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Quire')
        self.logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            if self.verbose:
                console_handler.setLevel(logging.DEBUG)
            else:
                console_handler.setLevel(logging.INFO)
                console_handler.addFilter(InfoFilter())
            console_formatter = logging.Formatter('%(message)s')
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('quire_%Y-%m-%d_%H-%M-%S.log')
                log_filepath = os.path.join(self.log_dir, log_filename)

                file_handler = logging.FileHandler(log_filepath)
                file_handler.setLevel(logging.DEBUG)
                file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
                file_handler.setFormatter(file_formatter)
                self.logger.addHandler(file_handler)

    def apply_locale(self, name):
        """Switch the process date locale used by readableDate."""
        if not name:
            return
        try:
            locale.setlocale(locale.LC_TIME, name)
            self.logger.debug(f"Using locale {name} for dates")
        except locale.Error as e:
            self.logger.warning(f"Unsupported locale {name}: {e}")

    def find_routine(self):
        """Locate the site's configure() routine, falling back to the built-in one."""
        for filename in CONFIG_MODULES:
            path = os.path.join(self.config_dir, filename)
            if os.path.isfile(path):
                self.config_module_path = path
                self.logger.info(f"Using configuration module {os.path.relpath(path)}")
                return load_config_module(path)

        self.logger.info("Using built-in configuration")
        return default_configure

    def build_config(self):
        """Apply settings then the routine to a fresh SiteConfig and resolve it."""
        site_config = SiteConfig()
        self.settings_loader.apply(site_config)
        self.routine(site_config)
        resolved = site_config.resolve()
        self.logger.debug(f"Resolved configuration: {resolved.as_dict()}")
        return resolved

    def environment(self, templates_dir=None, **kwargs):
        """Jinja2 environment carrying the registered filters."""
        loader = FileSystemLoader(templates_dir) if templates_dir else None
        return self.config.create_environment(loader=loader, **kwargs)

    def is_template(self, path):
        return self.config.is_template(path)

    def merge_data(self, *scopes):
        return self.config.merge_data(*scopes)

    def load_data_file(self, file_path):
        """Load a YAML or JSON data file."""
        ext = os.path.splitext(file_path)[1].lower()
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                if ext in ('.yml', '.yaml'):
                    data = yaml.safe_load(f)
                elif ext == '.json':
                    data = json.load(f)
                else:
                    raise ValueError(f"Unsupported data file format: {ext}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in data file {file_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in data file {file_path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Data file {file_path} must contain a mapping")
        return data
