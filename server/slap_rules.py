"""
Slap rules for the slap-card game.

Each rule is a pure predicate over the tail of the center pile. The table
below is the only place slap patterns are defined; RuleSet switches them on
and off. A slap is valid when any enabled rule matches.

Pile layout (oldest card first):
    [first, ..., third-last, second-last, last]
"""

from dataclasses import asdict, dataclass
from enum import Enum
from itertools import combinations
from typing import Callable, Optional, Sequence

from cards import Card, Rank
from constants import RUN_LENGTH, SLAP_TARGET_SUM


class PenaltyPolicy(str, Enum):
    """
    What happens to a player who slaps a pile that doesn't match.

    BURN: Offender must burn their top card before anyone may play again.
    RANDOM_TRANSFER: Offender's top card goes straight to a random other player.
    """

    BURN = "burn"
    RANDOM_TRANSFER = "random_transfer"


@dataclass
class RuleSet:
    """
    Which slap patterns and extras are enabled for a game.

    All rules default to on, matching the full house rule set.
    Only changeable before the game starts.
    """

    doubles: bool = True
    """Two cards of the same rank in a row."""

    sandwich: bool = True
    """Same rank with one card between them."""

    marriage: bool = True
    """A Queen and a King next to each other, either order."""

    top_bottom: bool = True
    """Last card matches the first card of the pile."""

    adds_to_10: bool = True
    """Any two of the last three cards sum to 10."""

    runs: bool = True
    """Last four cards form a straight, up or down."""

    face_cards: bool = True
    """Jack/Queen/King/Ace start a challenge."""

    penalty_policy: str = PenaltyPolicy.BURN.value
    """Penalty for a bad slap: 'burn' or 'random_transfer'."""

    # camelCase names used by browser clients
    _CLIENT_KEYS = {
        "doubles": "doubles",
        "sandwich": "sandwich",
        "marriage": "marriage",
        "top_bottom": "topBottom",
        "adds_to_10": "addsTo10",
        "runs": "runs",
        "face_cards": "faceCards",
        "penalty_policy": "penaltyPolicy",
    }

    @classmethod
    def from_client_data(cls, data: dict, base: Optional["RuleSet"] = None) -> "RuleSet":
        """
        Build a RuleSet from a client message.

        Accepts snake_case or camelCase keys. Missing keys keep the value
        from `base` (or the defaults).

        Raises:
            ValueError: If penalty_policy is not a known policy.
        """
        base = base or cls()
        values = asdict(base)
        for attr, camel in cls._CLIENT_KEYS.items():
            if attr in data:
                values[attr] = data[attr]
            elif camel in data:
                values[attr] = data[camel]

        policy = PenaltyPolicy(values.pop("penalty_policy")).value
        flags = {k: bool(v) for k, v in values.items()}
        return cls(penalty_policy=policy, **flags)

    def to_dict(self) -> dict:
        return asdict(self)

    def enabled_rules(self) -> list[str]:
        """Names of the slap rules that are switched on, in table order."""
        return [rule.name for rule in SLAP_RULES if getattr(self, rule.name)]


# =============================================================================
# Predicates
# =============================================================================
# Each takes the full pile; SlapRule.min_cards guarantees the length.


def _doubles(pile: Sequence[Card]) -> bool:
    return pile[-1].rank == pile[-2].rank


def _sandwich(pile: Sequence[Card]) -> bool:
    return pile[-1].rank == pile[-3].rank


def _marriage(pile: Sequence[Card]) -> bool:
    return {pile[-1].rank, pile[-2].rank} == {Rank.QUEEN, Rank.KING}


def _top_bottom(pile: Sequence[Card]) -> bool:
    return pile[0].rank == pile[-1].rank


def _adds_to_10(pile: Sequence[Card]) -> bool:
    tail = pile[-3:]
    return any(a.value + b.value == SLAP_TARGET_SUM for a, b in combinations(tail, 2))


def _runs(pile: Sequence[Card]) -> bool:
    values = [card.value for card in pile[-RUN_LENGTH:]]
    steps = {b - a for a, b in zip(values, values[1:])}
    return steps == {1} or steps == {-1}


@dataclass(frozen=True)
class SlapRule:
    """One entry of the rule table."""

    name: str
    min_cards: int
    predicate: Callable[[Sequence[Card]], bool]

    def matches(self, pile: Sequence[Card]) -> bool:
        return len(pile) >= self.min_cards and self.predicate(pile)


SLAP_RULES: tuple[SlapRule, ...] = (
    SlapRule("doubles", 2, _doubles),
    SlapRule("sandwich", 3, _sandwich),
    SlapRule("marriage", 2, _marriage),
    SlapRule("top_bottom", 2, _top_bottom),
    SlapRule("adds_to_10", 2, _adds_to_10),
    SlapRule("runs", RUN_LENGTH, _runs),
)


def matching_rules(pile: Sequence[Card], rules: RuleSet) -> list[str]:
    """
    Find every enabled rule the pile currently satisfies.

    Args:
        pile: Center pile, oldest card first.
        rules: Rule toggles for this game.

    Returns:
        Names of matching rules in table order (empty if none).
    """
    return [
        rule.name
        for rule in SLAP_RULES
        if getattr(rules, rule.name) and rule.matches(pile)
    ]


def is_valid_slap(pile: Sequence[Card], rules: RuleSet) -> bool:
    """Check whether slapping the pile right now would win it."""
    return bool(matching_rules(pile, rules))
