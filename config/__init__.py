"""Configuration settings and constants for lockbox.

The constants are defined once in `config.settings` and re-exported here so
both `from config import KEY_LENGTH` and `from config.settings import
KEY_LENGTH` work.
"""

from .settings import *  # noqa: F401,F403
from .settings import __all__  # noqa: F401
