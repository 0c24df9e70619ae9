"""Shared helpers for abscope."""
