"""Presentation-side connectors (console)."""
