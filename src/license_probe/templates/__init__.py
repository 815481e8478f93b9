"""Versioned build tool probe templates."""
