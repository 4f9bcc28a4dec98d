"""
Discern - Command Line Interface

Main CLI entry point for scoring lyrics and text.
"""
from cli.main import app, main

__all__ = ["app", "main"]
