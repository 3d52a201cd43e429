"""Clients for the external systems: Gemini, IPFS and the NanoNFT contract."""
