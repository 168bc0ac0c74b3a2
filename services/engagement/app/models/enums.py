import enum

from sqlalchemy import Enum as SAEnum


class Category(str, enum.Enum):
    PROGRAMMING = "Programming"
    REACTIONS = "Reactions"
    WHOLESOME = "Wholesome"
    ANIMALS = "Animals"
    SPORTS = "Sports"
    MOVIES = "Movies"
    GAMING = "Gaming"
    OTHER = "Other"


class Visibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class EngagementKind(str, enum.Enum):
    LIKE = "like"
    SAVE = "save"


class CounterField(str, enum.Enum):
    """Denormalized counters on content_items that may be adjusted in place."""

    LIKE_COUNT = "like_count"
    COMMENT_COUNT = "comment_count"


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


# Stored by value ("Programming", "like") rather than member name; reused across models
category_enum = SAEnum(Category, name="content_category", values_callable=_values)
visibility_enum = SAEnum(Visibility, name="content_visibility", values_callable=_values)
engagement_kind_enum = SAEnum(EngagementKind, name="engagement_kind", values_callable=_values)
