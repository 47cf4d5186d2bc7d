"""
Failsim Utilities
Input validation, error messages and CLI bootstrap.
"""

from .defensive import InputValidator, ValidationError
from .error_messages import format_error

__all__ = ['InputValidator', 'ValidationError', 'format_error']
