"""
API routers for the NanoNFT server.
"""

from . import collection, generate, mint

__all__ = ["collection", "generate", "mint"]
