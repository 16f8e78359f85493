"""
Common Module

Errors and shared helpers.
"""
