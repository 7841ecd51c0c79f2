"""Local job application tracker backed by a JSON file."""

__version__ = "0.1.0"
