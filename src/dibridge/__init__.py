"""dibridge: Discord side of a Discord <-> IRC bridge."""

__version__ = "0.1.0"
