"""
HTTP routes for Kintai.
"""
