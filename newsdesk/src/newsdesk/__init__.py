"""
News dashboard backend.

Resolves many unreliable RSS/Atom feeds into a small, clean, recent set of
articles per source.
"""

__version__ = "1.0.0"
