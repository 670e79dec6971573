"""CLI module.

This module provides the click command groups for fake-idp.
"""
