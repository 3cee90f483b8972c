"""HTTP front end for an external bytecode decompiler."""

__version__ = "1.0.0"
