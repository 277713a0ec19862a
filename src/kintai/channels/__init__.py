"""
Chat channel drivers for Kintai.
"""
