# carrymatch/__init__.py
"""
Carrymatch: matching of delivery demands with traveler journeys.
"""

__version__ = "1.0.0"
