"""Reference-graph neighborhood extraction for cross-referencing JSON corpora."""

__version__ = "0.3.0"
