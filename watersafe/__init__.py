"""WaterSafe Hub - citizen water-quality report service."""

__version__ = "0.1.0"
