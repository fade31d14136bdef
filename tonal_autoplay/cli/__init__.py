#!/usr/bin/env python3
"""
Command-line interface for Tonal Autoplay
"""

from .main import app, main

__all__ = ["app", "main"]
