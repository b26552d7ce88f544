"""
Connections Puzzle Service
Fetches the daily Connections puzzle from prioritized sources.
"""
__version__ = "1.0.0"
