"""Packaged sample data for the demo application."""
