"""
Defensive programming utilities for Failsim.
Input validation for retry settings.
"""

from typing import Any, Optional


class ValidationError(Exception):
    """Raised when validation fails."""
    pass


class InputValidator:
    """Validates all inputs defensively."""

    @staticmethod
    def validate_int(value: Any, min_val: Optional[int] = None) -> int:
        """
        Validate integer input.

        Args:
            value: Value to validate
            min_val: Minimum value

        Returns:
            Validated integer

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            raise ValidationError("Integer cannot be None")

        if isinstance(value, bool):
            raise ValidationError(f"Expected integer, got bool: {value}")

        if not isinstance(value, int):
            try:
                value = int(value)
            except (ValueError, TypeError):
                raise ValidationError(f"Cannot convert to integer: {value}")

        if min_val is not None and value < min_val:
            raise ValidationError(f"Value too small: {value} < {min_val}")

        return value

    @staticmethod
    def validate_seconds(value: Any, min_val: float = 0.0) -> float:
        """
        Validate a duration in seconds (int or float).

        Raises:
            ValidationError: If value is not a number or below min_val
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"Expected number of seconds, got {type(value).__name__}: {value!r}")

        if value < min_val:
            raise ValidationError(f"Duration too small: {value} < {min_val}")

        return float(value)
