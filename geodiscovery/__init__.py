"""
GeoDiscovery - Geospatial discovery and ranking of nearby establishments.

Example:
    >>> from geodiscovery.domains.search import DiscoveryEngine
    >>> engine = DiscoveryEngine(catalog)
    >>> envelope = await engine.search_radius(query)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
