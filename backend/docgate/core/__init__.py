"""Core configuration, identity and rank tables."""
