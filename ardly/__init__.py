"""'ardly bot launcher: chat login and OAuth token retrieval."""

__version__ = "0.1.0"
