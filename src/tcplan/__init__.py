"""tcplan: traffic control plan generator."""

__version__ = "0.1.0"
