"""
Cross-cutting utilities for playdeck.

Contains:
- parsers: Command and argument parsing
"""

from .parsers import *
