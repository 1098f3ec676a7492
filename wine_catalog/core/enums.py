"""Enums for wine catalog fields and query options."""

from enum import Enum


class WineType(str, Enum):
    """Wine type classification."""

    RED = "red"
    WHITE = "white"
    ORANGE = "orange"
    ROSE = "rosé"
    SPARKLING = "sparkling"
    DESSERT = "dessert"


class AddedSulfites(str, Enum):
    """Whether sulfites were added during vinification."""

    YES = "yes"
    NO = "no"
    UNKNOWN = "n/a"


class SortKey(str, Enum):
    """Supported orderings for wine search results."""

    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    AVERAGE_RATING_ASC = "average_rating_asc"
    AVERAGE_RATING_DESC = "average_rating_desc"
    AVERAGE_PRICE_ASC = "average_price_asc"
    AVERAGE_PRICE_DESC = "average_price_desc"
