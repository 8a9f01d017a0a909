"""Core account workflows."""
