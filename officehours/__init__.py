"""Mentor office-hours booking core."""
