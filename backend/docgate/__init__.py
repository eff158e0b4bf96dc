"""DocGate: access decisions for shared, group-owned documents."""

__version__ = "1.0.0"
