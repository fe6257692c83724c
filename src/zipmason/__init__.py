"""zipmason - create, list, extend and extract ZIP archives."""

__version__ = "1.0.0"
