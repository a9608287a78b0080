"""Building blocks for vehicle data broker clients: values, wire conversions, metadata and channel configuration."""

__version__ = "0.1.0"
__all__ = [
    "values",
    "channel_config",
    "v1_conversions",
    "kuksa_conversions",
    "metadata",
]