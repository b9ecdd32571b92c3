"""Core errors and constants shared across the bridge."""
