"""
Kintai - a Discord bot that records work sessions in Google Sheets.
"""

__version__ = "0.1.0"
