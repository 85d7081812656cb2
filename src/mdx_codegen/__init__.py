"""Generate a source tree from an MDX prompt document."""

__version__ = "0.1.0"
