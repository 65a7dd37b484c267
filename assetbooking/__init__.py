"""
assetbooking - Lab equipment booking with slot availability checks.
"""

__version__ = "0.1.0"
