"""Agents, chains, tools and a local model manager for completion servers."""

__version__ = "0.1.0"