"""
Core modules for Image Studio.

This package contains pricing, token estimation, enhancement presets,
and the usage accounting service.
"""
