from app.db.repo.game_sessions_repo import GameSessionsRepo

__all__ = [
    "GameSessionsRepo",
]
