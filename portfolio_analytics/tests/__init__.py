"""
Test suite for the portfolio analytics engine.
"""
