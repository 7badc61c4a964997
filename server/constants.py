"""
Card and table constants for the slap-card game.

This module is the single source of truth for rank values, challenge
lengths and deck size. Rules in slap_rules.py and challenge.py read from here.

Rank values (used by adds-to-10 and runs):
    - 2-10: Face value
    - Jack: 11
    - Queen: 12
    - King: 13
    - Ace: 14
"""

# =============================================================================
# Card Values - Single Source of Truth
# =============================================================================

RANK_VALUE_TABLE: dict[str, int] = {
    '2': 2,
    '3': 3,
    '4': 4,
    '5': 5,
    '6': 6,
    '7': 7,
    '8': 8,
    '9': 9,
    '10': 10,
    'J': 11,
    'Q': 12,
    'K': 13,
    'A': 14,
}

# Cards the next player gets to answer a face card
CHALLENGE_ATTEMPT_TABLE: dict[str, int] = {
    'J': 1,
    'Q': 2,
    'K': 3,
    'A': 4,
}

SLAP_TARGET_SUM = 10
RUN_LENGTH = 4


# =============================================================================
# Table Constants
# =============================================================================

DECK_SIZE = 52
MIN_PLAYERS = 2
DEFAULT_MAX_PLAYERS = 8

# Versions whose events stay available to lagging snapshot forwarders
EVENT_HISTORY_VERSIONS = 512
