"""Small helpers shared by commands."""
