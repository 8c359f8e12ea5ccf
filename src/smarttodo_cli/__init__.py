"""Smart To-Do: a terminal client for a hosted to-do backend."""

__version__ = "0.1.0"
