from app.models.match import Match, MatchInteraction
from app.models.profile import Profile, ProfileSubject
from app.models.user import User

__all__ = [
    "User",
    "Profile",
    "ProfileSubject",
    "Match",
    "MatchInteraction",
]
