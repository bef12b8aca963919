"""Read EBML element schemas, generate C stream parser headers, and trace streams."""

__version__ = "0.1.0"