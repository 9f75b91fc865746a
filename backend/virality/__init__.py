"""Virality Analyzer backend."""
