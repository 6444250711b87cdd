# tools/__init__.py
# Re-export commonly used helpers for convenience.

from .analyze_photo import analyze_file, build_request_body

__all__ = [
    "analyze_file",
    "build_request_body",
]
