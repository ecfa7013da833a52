"""
Image Studio.

Backend for a browser image editor: Gemini-powered image generation and
enhancement endpoints plus free-tier usage accounting.
"""

__version__ = "0.1.0"
