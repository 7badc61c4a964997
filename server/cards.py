"""
Cards and deck handling for the slap-card game.

The deck is a plain list of 52 immutable Card values. Shuffling takes an
injected random.Random so games can be replayed exactly from a seed.

Hand and pile convention:
    The top of a hand is its LAST element. Dealing appends, playing pops from
    the end, and won piles are appended (then the hand is reshuffled).
"""

import random
from dataclasses import dataclass
from enum import Enum

from constants import RANK_VALUE_TABLE


class Suit(Enum):
    """Card suits for a standard deck."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}


class Rank(Enum):
    """Card ranks, low to high. Aces are high in this game."""

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"


# Map Rank enum to numeric values (derived from constants.py as single source of truth)
RANK_VALUES: dict[Rank, int] = {rank: RANK_VALUE_TABLE[rank.value] for rank in Rank}

FACE_RANKS = frozenset({Rank.JACK, Rank.QUEEN, Rank.KING, Rank.ACE})


@dataclass(frozen=True)
class Card:
    """
    A playing card. Immutable, so the same card can sit in snapshots safely.

    Attributes:
        suit: The card's suit.
        rank: The card's rank.
    """

    suit: Suit
    rank: Rank

    @property
    def value(self) -> int:
        """Numeric value used by adds-to-10 and runs."""
        return RANK_VALUES[self.rank]

    @property
    def is_face(self) -> bool:
        """Jack, Queen, King and Ace start a challenge."""
        return self.rank in FACE_RANKS

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        return {"rank": self.rank.value, "suit": self.suit.value}

    @classmethod
    def from_dict(cls, d: dict) -> "Card":
        return cls(Suit(d["suit"]), Rank(d["rank"]))

    def __str__(self) -> str:
        return f"{self.rank.value}{SUIT_SYMBOLS[self.suit]}"


# -------------------------------------------------------------------------
# Deck Manager
# -------------------------------------------------------------------------

def build_deck() -> list[Card]:
    """
    Build a standard 52-card deck, one card per rank and suit.

    Order is suit-major and carries no meaning; shuffle before dealing.
    """
    return [Card(suit, rank) for suit in Suit for rank in Rank]


def shuffle_deck(deck: list[Card], rng: random.Random) -> list[Card]:
    """
    Return a uniformly shuffled copy of a deck (Fisher-Yates).

    Args:
        deck: Cards to shuffle. Not modified.
        rng: Random source. The same seed and input give the same order.

    Returns:
        A new list with the same cards in random order.
    """
    cards = list(deck)
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def deal(deck: list[Card], player_order: list[str]) -> dict[str, list[Card]]:
    """
    Deal the whole deck round-robin, starting with the first seat.

    With 52 cards and N players, hand sizes differ by at most one and the
    extra cards go to the earliest seats.

    Args:
        deck: Cards to deal, dealt from the front.
        player_order: Seating order of player ids.

    Returns:
        Mapping of player id to the cards dealt to them, in deal order.

    Raises:
        ValueError: If there is nobody to deal to.
    """
    if not player_order:
        raise ValueError("Cannot deal to an empty table")

    hands: dict[str, list[Card]] = {player_id: [] for player_id in player_order}
    for i, card in enumerate(deck):
        hands[player_order[i % len(player_order)]].append(card)
    return hands
