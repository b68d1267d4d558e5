from __future__ import annotations


class ValidationError(ValueError):
    """Rejected input. Raised before anything is written."""
