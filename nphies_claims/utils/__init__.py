"""Utility helpers for claim processing."""
