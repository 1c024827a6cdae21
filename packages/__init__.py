"""Chatter library packages."""
