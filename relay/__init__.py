"""Streaming chat relay between a browser client and a tool-using code agent."""

__version__ = "0.3.0"
