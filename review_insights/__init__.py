"""Hybrid AI / rule-based performance review insights."""
