"""Presentation layer: handle API and pytest plugin."""
