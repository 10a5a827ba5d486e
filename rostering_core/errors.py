"""Exceptions raised at the engine boundary for malformed input.

Business outcomes (ineligible staff, unfilled shifts, compliance breaches)
are returned as data and never raised.
"""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Input that cannot be priced, scored or validated without guessing."""
