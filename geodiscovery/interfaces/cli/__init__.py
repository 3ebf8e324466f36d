"""
CLI Interface - Command-line tools for GeoDiscovery.

Provides commands for:
- Catalog setup and loading
- Radius and map searches
- Health checks and serving the API
"""

from .main import app, main

__all__ = ["app", "main"]
