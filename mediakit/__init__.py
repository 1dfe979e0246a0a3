"""Building blocks for media streaming protocols and containers."""

__version__ = "0.1.0"