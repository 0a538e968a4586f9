"""Hypothesis strategies shared by the property-based tests."""
