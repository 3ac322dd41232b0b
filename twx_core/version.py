"""
TWX Version - single source of truth for the package version.

Read by the package, the CLI (--version) and the configuration defaults.
"""

__version__ = "0.3.0"
