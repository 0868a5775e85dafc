"""
Application layer - venue wiring, event journal, analytics.
"""
