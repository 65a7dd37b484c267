"""
Convenience entry point for running assetbooking directly.

Usage: python -m assetbooking [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
