from app.models.tables import Goal, Match, Player, Presence, Season, SeasonPlayer, Team

__all__ = [
    "Goal",
    "Match",
    "Player",
    "Presence",
    "Season",
    "SeasonPlayer",
    "Team",
]
