"""
NanoNFT API server package.
"""

from .main import NanoNFTAPIServer, create_app

__all__ = ["NanoNFTAPIServer", "create_app"]
