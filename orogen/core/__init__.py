"""Core value types shared across oroGen."""
