"""Genomic breast cancer risk assessment studio."""

__version__ = "0.1.0"
