"""
Domain package - Core business logic with no external dependencies.

This package contains the pure algorithms behind a bill batch: splitting
the total amount, scheduling the bill dates and validating the request.
"""
