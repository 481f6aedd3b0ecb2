from app.db.models.base import Base
from app.db.models.game_sessions import GameSession

__all__ = ["Base", "GameSession"]
