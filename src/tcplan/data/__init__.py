"""Bundled rule table data."""
