# Blog API Services
from blogapi.services.auth import Fingerprint, TokenClaims, TokenEngine
from blogapi.services.content import CommentsService, LikesService, PostsService
from blogapi.services.events import BaseEvent, EventType, InProcessEventBus
from blogapi.services.summary import SummaryData, SummaryService
from blogapi.services.token_blacklist import MemoryTokenBlacklist, TokenBlacklist
from blogapi.services.users import InMemoryUserRepository, User, UserRepository, UserService

__all__ = [
    "BaseEvent",
    "CommentsService",
    "EventType",
    "Fingerprint",
    "InMemoryUserRepository",
    "InProcessEventBus",
    "LikesService",
    "MemoryTokenBlacklist",
    "PostsService",
    "SummaryData",
    "SummaryService",
    "TokenBlacklist",
    "TokenClaims",
    "TokenEngine",
    "User",
    "UserRepository",
    "UserService",
]
