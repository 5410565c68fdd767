"""
Network parsing, pump curves and projection catalogue.
"""
