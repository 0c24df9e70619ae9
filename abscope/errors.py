"""Typed errors raised for inputs the analysis engines cannot accept."""
from __future__ import annotations


class InvalidInputError(ValueError):
    """Fatal input problem; the whole computation is withheld."""


class InvalidSizeError(InvalidInputError):
    """Transform length is not a power of two or real/imag lengths differ."""
