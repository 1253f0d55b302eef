"""Route group exports."""

from . import gravity, health, locations, network

__all__ = ["network", "gravity", "locations", "health"]
