"""SAKHII -- voice assistant for women's reproductive health."""

__version__ = "0.1.0"
