from enum import Enum


class RoleType(str, Enum):
    MEMBER = "member"
    FRIEND = "friend"
    NEIGHBOR = "neighbor"
    PASTOR = "pastor"
    OTHER = "other"


class EventType(str, Enum):
    LIFE = "life"
    MEMORY = "memory"
    HISTORICAL = "historical"


class LinkKind(str, Enum):
    PARENT_CHILD = "parent_child"
    SPOUSE = "spouse"


# Entity store collection names
PEOPLE = "people"
FAMILIES = "families"
EVENTS = "events"
MEMORIES = "memories"

# Highest BMP private-use code point; closes a prefix range query
PREFIX_SENTINEL = "\uf8ff"
