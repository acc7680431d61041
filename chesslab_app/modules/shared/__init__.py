"""Helpers shared by the feature modules."""
