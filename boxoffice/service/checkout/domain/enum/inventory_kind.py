from enum import StrEnum


class InventoryKind(StrEnum):
    EVENT = 'event'
    TIER = 'tier'  # (event, ticket tier)
    EXPERIENCE = 'experience'  # (experience, schedule)
