"""
Utility functions for Datarium.

This package contains:
- datetime_utils: timezone-aware timestamps and ISO-8601 parsing
- decimal_utils: Decimal conversion and percentage math
- validation_utils: reusable validators for Pydantic models
"""
