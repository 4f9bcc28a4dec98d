"""
Discern - HTTP API
"""
