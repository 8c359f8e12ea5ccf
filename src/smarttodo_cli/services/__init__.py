"""Service layer for Smart To-Do.

Services hold the application logic between the CLI commands and the
backend adapters: configuration, task synchronization, session lifecycle
and client-side filtering.
"""
