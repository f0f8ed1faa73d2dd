"""Utilities."""
from . import numpy

__all__ = ["numpy"]
