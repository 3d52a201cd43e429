"""Mint workflow, ownership scanning and metadata resolution."""
