"""Command modules for Smart To-Do CLI."""
