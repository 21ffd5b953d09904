#!/usr/bin/env python3
"""
Convenience entry point for running scheduleslots as a module.

Usage: python -m scheduleslots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
