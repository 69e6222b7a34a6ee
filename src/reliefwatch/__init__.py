"""
ReliefWatch - geocoding, AI verification and caching for disaster response.
"""

__version__ = "0.1.0"
