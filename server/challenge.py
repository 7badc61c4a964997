"""
Face-card challenge state machine.

States:
    IDLE   -> no challenge running
    ACTIVE -> someone played a face card; the following players get a fixed
              number of cards (J=1, Q=2, K=3, A=4) to answer with a face card

Transitions happen only on a card play, and only with the face_cards rule on:
    IDLE   + face card     -> ACTIVE   (STARTED)
    ACTIVE + face card     -> IDLE     (MET, the answer does not start a new one)
    ACTIVE + other card    -> ACTIVE   (CONTINUED, one attempt used)
                           -> IDLE     (FAILED, last attempt used)

This module never touches piles or hands. Game applies the outcome.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cards import Card, Rank
from constants import CHALLENGE_ATTEMPT_TABLE
from errors import InvariantViolation


CHALLENGE_ATTEMPTS: dict[Rank, int] = {
    Rank(rank): attempts for rank, attempts in CHALLENGE_ATTEMPT_TABLE.items()
}


class ChallengeOutcome(str, Enum):
    """What a single card play did to the challenge."""

    NONE = "none"
    STARTED = "started"
    MET = "met"
    CONTINUED = "continued"
    FAILED = "failed"


@dataclass(frozen=True)
class Challenge:
    """
    The one challenge slot of a game. Replaced, never mutated.

    Attributes:
        active: Whether a challenge is running.
        triggering_card: The face card that started it.
        attempts_left: Cards the responders may still play.
        initiating_player_id: Who played the face card.
    """

    active: bool = False
    triggering_card: Optional[Card] = None
    attempts_left: int = 0
    initiating_player_id: Optional[str] = None

    @classmethod
    def idle(cls) -> "Challenge":
        return cls()

    @classmethod
    def start(cls, card: Card, player_id: str) -> "Challenge":
        return cls(
            active=True,
            triggering_card=card,
            attempts_left=CHALLENGE_ATTEMPTS[card.rank],
            initiating_player_id=player_id,
        )

    def to_dict(self) -> dict:
        return {
            "active": self.active,
            "triggering_card": self.triggering_card.to_dict() if self.triggering_card else None,
            "attempts_left": self.attempts_left,
            "initiating_player_id": self.initiating_player_id,
        }


@dataclass(frozen=True)
class ChallengeStep:
    """Result of feeding one played card into the state machine."""

    challenge: Challenge
    outcome: ChallengeOutcome


def play_into_challenge(
    challenge: Challenge,
    card: Card,
    player_id: str,
    face_cards_enabled: bool = True,
) -> ChallengeStep:
    """
    Advance the challenge state machine by one played card.

    Args:
        challenge: Current challenge state.
        card: The card just played.
        player_id: Who played it.
        face_cards_enabled: The face_cards rule; when off nothing changes.

    Returns:
        ChallengeStep with the new state and what happened. On FAILED the
        caller hands the pile to the seat after the initiator and does not
        advance the turn normally.

    Raises:
        InvariantViolation: If the incoming challenge is already inconsistent.
    """
    if not face_cards_enabled:
        return ChallengeStep(challenge, ChallengeOutcome.NONE)

    if not challenge.active:
        if card.is_face:
            return ChallengeStep(Challenge.start(card, player_id), ChallengeOutcome.STARTED)
        return ChallengeStep(challenge, ChallengeOutcome.NONE)

    if challenge.attempts_left <= 0:
        raise InvariantViolation(
            "challenge_exhausted",
            f"Active challenge with {challenge.attempts_left} attempts left",
        )

    if card.is_face:
        return ChallengeStep(Challenge.idle(), ChallengeOutcome.MET)

    attempts_left = challenge.attempts_left - 1
    if attempts_left == 0:
        return ChallengeStep(Challenge.idle(), ChallengeOutcome.FAILED)

    return ChallengeStep(
        Challenge(
            active=True,
            triggering_card=challenge.triggering_card,
            attempts_left=attempts_left,
            initiating_player_id=challenge.initiating_player_id,
        ),
        ChallengeOutcome.CONTINUED,
    )
