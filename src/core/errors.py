from __future__ import annotations

from typing import List, Sequence


class ValidationFailure(Exception):
    """One or more request violations, reported to the caller as a list."""

    def __init__(self, violations: Sequence[str]):
        self.violations: List[str] = list(violations)
        super().__init__("; ".join(self.violations) or "Validation failed")


class InvalidInputError(ValueError):
    pass


class UndefinedRatioError(InvalidInputError):
    """Risk-reward ratio requested for a trade whose loss leg is zero."""


class PriceSourceError(RuntimeError):
    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}")
