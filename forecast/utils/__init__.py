"""
Utility functions package.

This package contains reusable utility functions organized by domain:
- general.py: HTTP helpers (service result handling, JSON-safe conversion)
- date_utils.py: Month/year calendar arithmetic and ISO date parsing
- math_utils.py: Tolerant number parsing and day-based pro-ration
"""

from .general import _handle_service_result, convert_to_json_safe

__all__ = [
    '_handle_service_result',
    'convert_to_json_safe',
]
