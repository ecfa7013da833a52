"""
HTTP API for Image Studio.

Usage accounting and image generation endpoints served with FastAPI.
"""
