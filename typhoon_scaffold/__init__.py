"""Scaffolding for Typhoon Solana programs and workspaces."""

__version__ = "0.1.0"
