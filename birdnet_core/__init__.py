"""Configuration core of a BirdNET-Go detection node."""
