"""Chatter CLI package."""
