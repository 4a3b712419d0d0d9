"""Keep an Algolia index in sync with Kontent.ai content."""

__version__ = "0.1.0"
