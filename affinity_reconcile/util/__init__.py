"""
Utility functions and helpers.

Modules:
- files: directory and text/JSON file helpers
- log: logging configuration
- progress: rich progress and status helpers
- retry: exponential backoff for platform read calls
"""
