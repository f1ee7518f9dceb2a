"""Utility helpers for the stack compliance engine."""
