from enum import Enum, unique


@unique
class FriendshipStatus(str, Enum):
    SELF = "self"
    FRIENDS = "friends"
    PENDING_SENT = "pending_sent"
    PENDING_RECEIVED = "pending_received"
    NONE = "none"


@unique
class FriendRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"


@unique
class RequestDirection(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


@unique
class SuggestionReason(str, Enum):
    MUTUAL = "mutual"
    CONTACT = "contact"
    GAMING = "gaming"


@unique
class GamingGenre(str, Enum):
    FPS = "fps"
    ACTION = "action"
    BATTLE_ROYALE = "battle_royale"
    MOBA = "moba"
    RPG = "rpg"
    MMORPG = "mmorpg"
    ADVENTURE = "adventure"
    STRATEGY = "strategy"
    SIMULATION = "simulation"
    PUZZLE = "puzzle"
    RACING = "racing"
    SPORTS = "sports"
    FIGHTING = "fighting"
    HORROR = "horror"
    SURVIVAL = "survival"
    INDIE = "indie"
    CASUAL = "casual"
    PLATFORMER = "platformer"
    SANDBOX = "sandbox"
    CARD = "card"
    COMPETITIVE = "competitive"
    STORY = "story"
