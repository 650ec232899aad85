"""Route handlers for the API."""

from game_launcher.api.routes import files, health, themes

__all__ = ["files", "health", "themes"]
