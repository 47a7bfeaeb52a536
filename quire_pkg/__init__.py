"""
Quire - configuration layer for a Jinja2 static site generator.

A site declares its template formats, data merge policy, template filters and
plugins in a configure(config) routine. Quire runs that routine once at
startup and hands the frozen result to the templating pipeline.
"""

__version__ = "1.0.0"
__author__ = "Robert DeVore"
__email__ = "me@robertdevore.com"

from .config import ConfigurationError, ResolvedConfig, SiteConfig, build_config
from .core import Quire

__all__ = ['ConfigurationError', 'Quire', 'ResolvedConfig', 'SiteConfig', 'build_config']
