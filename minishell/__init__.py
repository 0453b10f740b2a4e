"""A small command shell with pipes, redirections, here-documents, variable expansion and pluggable builtins."""

__version__ = "0.1.0"

__all__ = ["__version__"]