"""Revenue planning core for short-term rental operators."""

__version__ = "0.1.0"
