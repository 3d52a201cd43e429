"""
NanoNFT - AI NFT generator and minter.

This package provides:
- Gemini image generation from text prompts
- IPFS upload of images and metadata documents
- Free-quota aware minting on the NanoNFT contract
- Ownership scanning to display a wallet's collection
"""

__version__ = "0.1.0"
