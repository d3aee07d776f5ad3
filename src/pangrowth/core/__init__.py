"""Core data types, interval structures and threshold handling."""
