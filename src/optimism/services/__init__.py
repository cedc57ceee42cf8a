"""Optimism service layer."""
