"""
errors.py
Exceptions raised by the service layer (converted to {success: False} by api.py).
"""

from __future__ import annotations


class GymError(Exception):
    """Base class for errors the operator should see."""


class ValidationError(GymError):
    """Bad input. Raised before anything is written."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(GymError):
    def __init__(self, kind: str, key):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")
