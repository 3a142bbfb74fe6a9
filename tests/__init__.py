"""
Test suite for the Quote API
"""
