"""Tokenize and parse Rust source, and read the arguments of antigen, presents and immune attributes."""

__version__ = "0.0.1"