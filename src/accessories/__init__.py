"""Bridge accessories for Lightsync."""

from accessories.lightbulb import LightbulbAccessory

__all__ = ["LightbulbAccessory"]
