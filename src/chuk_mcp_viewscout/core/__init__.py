"""Core viewshed, water detection, scoring, and terrain sampling."""
