"""pagesmith: a visual document builder engine."""

__version__ = "0.1.0"
