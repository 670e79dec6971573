"""Utilities module.

This module provides shared helpers such as the exception hierarchy.
"""
