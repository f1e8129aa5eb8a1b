"""
schema-spine - apply SQL migrations exactly once, halt on drift.
"""

__version__ = "0.1.0"

from schema_spine.core import *  # noqa
