"""Single-leg options contract selection for directional trades."""

__version__ = "0.1.0"
