"""Composition core: pure transforms plus the two persistence-aware helpers."""
