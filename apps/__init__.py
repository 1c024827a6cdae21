"""Chatter application shells.

This package contains thin I/O layers:
- worker: long-running creation job worker
- cli: Typer CLI
"""
