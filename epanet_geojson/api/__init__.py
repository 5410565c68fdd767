"""
HTTP API for network conversion.
"""
