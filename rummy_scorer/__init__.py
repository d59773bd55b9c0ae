"""Top-level package for the Indian Rummy hand engine and score keeper."""

from . import arranger, cards, declaration, grouping, melds, rules, scoreboard, state, storage

__all__ = [
    "arranger",
    "cards",
    "declaration",
    "grouping",
    "melds",
    "rules",
    "scoreboard",
    "state",
    "storage",
]
