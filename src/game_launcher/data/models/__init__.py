"""ORM models package for database tables.

This package provides SQLAlchemy ORM models representing database tables:
- GameFile: Stored game bundles and their detected client metadata
- CommunityTheme: Shared UI color themes with download and rating counters

All models inherit from the shared Base declarative class defined in data.db.
"""

from game_launcher.data.db import Base
from game_launcher.data.models.community_theme import CommunityTheme
from game_launcher.data.models.game_file import GameFile

__all__ = ["Base", "CommunityTheme", "GameFile"]
