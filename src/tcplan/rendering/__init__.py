"""Rendering: page templates, satellite imagery, headless browser PDF output, merging."""
