"""Core data types and errors."""
