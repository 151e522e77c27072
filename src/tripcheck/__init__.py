"""tripcheck — conformance checker for multi-step mobility transactions."""

__version__ = "0.3.0"
