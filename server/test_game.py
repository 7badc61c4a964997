"""
Test suite for the slap-card game engine.

Verifies the Game intents against the house rules:
- Lobby, rule locking and dealing
- Card play, turn order and stale plays
- Slaps, burns and the random-transfer penalty
- Face-card challenges (meeting and failing them)
- Winning, play again and players leaving
- Card conservation and invariant halts
- Event emission and snapshots

Hands are written bottom card first, so the last card listed is the next one
played.

Run with: pytest test_game.py -v
"""

import random
from dataclasses import FrozenInstanceError

import pytest

from cards import Card, Rank, Suit, build_deck
from challenge import Challenge
from errors import IllegalConfig, InvalidIntent, InvariantViolation, StaleIntent
from game import Game, GamePhase
from models.events import EventType
from models.snapshot import LastSlap
from slap_rules import PenaltyPolicy, RuleSet


SUITS = {"H": Suit.HEARTS, "D": Suit.DIAMONDS, "C": Suit.CLUBS, "S": Suit.SPADES}
NAMES = ["Alice", "Bob", "Carol", "Dave"]


def cards(*texts: str) -> list[Card]:
    """Build cards from short names like '5H', '10C', 'QS'."""
    return [Card(SUITS[t[-1]], Rank(t[:-1])) for t in texts]


def new_game(num_players: int = 2, rules: RuleSet = None, seed: int = 1234) -> tuple[Game, list[str]]:
    """Create a started game and return it with the player ids in seat order."""
    game = Game(rules=rules or RuleSet(), seed=seed)
    ids = [game.join(name) for name in NAMES[:num_players]]
    game.start_game()
    return game, ids


def set_table(game: Game, hands: dict, pile: list = (), filler: str = None) -> None:
    """
    Replace the dealt cards with known ones.

    Players missing from `hands` end up with nothing. Every card not placed
    goes to the bottom of `filler`'s hand (default: first listed player), so
    the whole deck stays in play.
    """
    used = [c for hand in hands.values() for c in hand] + list(pile)
    rest = [c for c in build_deck() if c not in used]
    for player in game.players:
        player.hand = list(hands.get(player.id, []))
    filler = filler or next(iter(hands))
    game.get_player(filler).hand[:0] = rest
    game.center_pile = list(pile)
    game.burn_pile = []


def hand(game: Game, player_id: str) -> list[Card]:
    return game.get_player(player_id).hand


# =============================================================================
# Lobby Tests
# =============================================================================

class TestLobby:

    def test_join_assigns_ids_and_bumps_version(self):
        game = Game()
        a = game.join("Alice")
        b = game.join("Bob")
        assert a != b
        assert [p.name for p in game.players] == ["Alice", "Bob"]
        assert game.version == 2

    def test_blank_name_rejected(self):
        game = Game()
        with pytest.raises(InvalidIntent) as exc:
            game.join("   ")
        assert exc.value.code == "empty_name"
        assert game.version == 0
        assert game.players == []

    def test_start_needs_two_players(self):
        game = Game()
        game.join("Alice")
        with pytest.raises(IllegalConfig) as exc:
            game.start_game()
        assert exc.value.code == "not_enough_players"
        assert game.phase == GamePhase.WAITING

    def test_start_deals_whole_deck(self):
        game, (a, b) = new_game(2)
        assert len(hand(game, a)) == 26
        assert len(hand(game, b)) == 26
        assert game.phase == GamePhase.PLAYING
        assert game.turns.current() == a
        assert game.center_pile == []
        assert game.version == 3

    def test_three_players_deal(self):
        game, ids = new_game(3)
        assert [len(hand(game, pid)) for pid in ids] == [18, 17, 17]

    def test_same_seed_same_deal(self):
        first, _ = new_game(2, seed=99)
        second, _ = new_game(2, seed=99)
        assert [p.hand for p in first.players] == [p.hand for p in second.players]

    def test_seating_kept_in_join_order_by_default(self):
        game, ids = new_game(4)
        assert game.turns.player_order == ids

    def test_seating_shuffled_at_deal(self):
        orders = set()
        for seed in range(10):
            game = Game(seed=seed, shuffle_seating=True)
            ids = [game.join(name) for name in NAMES]
            game.start_game()
            order = game.snapshot().player_order
            assert sorted(order) == sorted(ids)
            assert game.turns.current() == order[0]
            orders.add(tuple(ids.index(pid) for pid in order))
        assert len(orders) > 1

    def test_shuffled_seating_follows_seed(self):
        def seating(seed):
            game = Game(seed=seed, shuffle_seating=True)
            for name in NAMES:
                game.join(name)
            game.start_game()
            return [game.get_player(pid).name for pid in game.turns.player_order]

        assert seating(42) == seating(42)

    def test_join_after_start_rejected(self):
        game, _ = new_game(2)
        with pytest.raises(IllegalConfig) as exc:
            game.join("Late")
        assert exc.value.code == "game_already_started"

    def test_start_twice_rejected(self):
        game, _ = new_game(2)
        with pytest.raises(IllegalConfig):
            game.start_game()

    def test_rules_change_before_start(self):
        game = Game()
        game.join("Alice")
        game.set_rules(RuleSet(runs=False))
        assert not game.rules.runs
        assert game.version == 2

    def test_rules_locked_after_start(self):
        game, _ = new_game(2)
        with pytest.raises(IllegalConfig) as exc:
            game.set_rules(RuleSet(doubles=False))
        assert exc.value.code == "game_already_started"
        assert game.rules.doubles

    def test_session_full(self):
        game = Game(max_players=2)
        game.join("Alice")
        game.join("Bob")
        with pytest.raises(IllegalConfig) as exc:
            game.join("Carol")
        assert exc.value.code == "session_full"


# =============================================================================
# Card Play Tests
# =============================================================================

class TestPlayCard:

    def setup_method(self):
        self.game, (self.a, self.b) = new_game(2)
        set_table(self.game, {self.a: cards("2H", "7C"), self.b: cards("3D", "4S")})

    def test_moves_top_card_and_passes_turn(self):
        before = len(hand(self.game, self.a))
        played = self.game.play_card(self.a)
        assert played == cards("7C")[0]
        assert self.game.center_pile == cards("7C")
        assert len(hand(self.game, self.a)) == before - 1
        assert self.game.turns.current() == self.b

    def test_not_your_turn(self):
        version = self.game.version
        with pytest.raises(InvalidIntent) as exc:
            self.game.play_card(self.b)
        assert exc.value.code == "not_your_turn"
        assert self.game.version == version

    def test_play_after_turn_moved_is_stale(self):
        seen = self.game.version
        self.game.play_card(self.a)
        with pytest.raises(StaleIntent) as exc:
            self.game.play_card(self.a, observed_version=seen)
        assert exc.value.code == "turn_moved"

    def test_repeat_play_without_version_is_not_your_turn(self):
        self.game.play_card(self.a)
        with pytest.raises(InvalidIntent):
            self.game.play_card(self.a)

    def test_unknown_player(self):
        with pytest.raises(InvalidIntent) as exc:
            self.game.play_card("nobody")
        assert exc.value.code == "unknown_player"

    def test_play_clears_last_slap(self):
        set_table(self.game, {self.a: cards("2H", "7C"), self.b: cards("3D", "4S")},
                  pile=cards("9C", "8H"))
        self.game.slap(self.b)
        assert self.game.last_slap is not None
        self.game.burn(self.b)
        self.game.play_card(self.a)
        assert self.game.last_slap is None

    def test_before_start(self):
        game = Game()
        a = game.join("Alice")
        game.join("Bob")
        with pytest.raises(InvalidIntent) as exc:
            game.play_card(a)
        assert exc.value.code == "game_not_started"

    def test_empty_hand(self):
        game, (a, b, c) = new_game(3)
        set_table(game, {b: cards("3D"), c: cards("6D")})
        with pytest.raises(InvalidIntent) as exc:
            game.play_card(a)
        assert exc.value.code == "empty_hand"


# =============================================================================
# Slap Tests
# =============================================================================

class TestSlap:

    def setup_method(self):
        self.game, (self.a, self.b) = new_game(2)

    def test_valid_slap_wins_pile(self):
        set_table(self.game, {self.a: cards("2H", "7C"), self.b: cards("3D", "4S")},
                  pile=cards("9C", "5H", "5D"))
        result = self.game.slap(self.b)
        assert result.valid
        assert "doubles" in result.rules
        assert self.game.center_pile == []
        assert len(hand(self.game, self.b)) == 5
        assert self.game.turns.current() == self.b
        assert self.game.last_slap == LastSlap(self.b, True, result.rules)
        assert self.game.pile_version == self.game.version

    def test_current_player_may_slap(self):
        set_table(self.game, {self.a: cards("2H"), self.b: cards("3D")}, pile=cards("QH", "KS"))
        assert self.game.slap(self.a).rules == ("marriage",)

    def test_empty_pile(self):
        with pytest.raises(InvalidIntent) as exc:
            self.game.slap(self.b)
        assert exc.value.code == "empty_pile"

    def test_second_slap_on_taken_pile_is_stale(self):
        set_table(self.game, {self.a: cards("2H"), self.b: cards("3D")}, pile=cards("4C", "6D"))
        seen = self.game.version
        assert self.game.slap(self.b, observed_version=seen).valid
        with pytest.raises(StaleIntent) as exc:
            self.game.slap(self.a, observed_version=seen)
        assert exc.value.code == "pile_already_taken"
        with pytest.raises(StaleIntent) as exc:
            self.game.slap(self.a)
        assert exc.value.code == "pile_already_taken"
        assert hand(self.game, self.a) == cards("2H")

    def test_next_card_clears_taken_pile(self):
        set_table(self.game, {self.a: cards("2H"), self.b: cards("3D", "8D")}, pile=cards("4C", "6D"))
        self.game.slap(self.b)
        self.game.play_card(self.b)
        assert not self.game.pile_taken
        assert not self.game.slap(self.a).valid

    def test_fresh_deal_pile_is_just_empty(self):
        set_table(self.game, {self.a: cards("2H"), self.b: cards("3D")}, pile=cards("4C", "6D"))
        self.game.slap(self.b)
        self.game.play_again()
        with pytest.raises(InvalidIntent) as exc:
            self.game.slap(self.a)
        assert exc.value.code == "empty_pile"

    def test_invalid_slap_requires_burn(self):
        set_table(self.game, {self.a: cards("2H", "7C"), self.b: cards("3D", "4S")},
                  pile=cards("5H", "9C"))
        result = self.game.slap(self.b)
        assert not result.valid
        assert self.game.burn_in_progress
        assert self.game.burn_offender_id == self.b
        assert self.game.last_slap == LastSlap(self.b, False)

        for intent in (self.game.play_card, self.game.slap):
            with pytest.raises(InvalidIntent) as exc:
                intent(self.a)
            assert exc.value.code == "burn_in_progress"

        with pytest.raises(InvalidIntent) as exc:
            self.game.burn(self.a)
        assert exc.value.code == "not_burn_offender"

        burned = self.game.burn(self.b)
        assert burned == cards("4S")[0]
        assert self.game.burn_pile == [burned]
        assert hand(self.game, self.b) == cards("3D")
        assert not self.game.burn_in_progress
        assert self.game.burn_offender_id is None

        self.game.play_card(self.a)

    def test_burn_without_pending(self):
        with pytest.raises(InvalidIntent) as exc:
            self.game.burn(self.a)
        assert exc.value.code == "no_burn_pending"

    def test_random_transfer_penalty(self):
        rules = RuleSet(penalty_policy=PenaltyPolicy.RANDOM_TRANSFER.value)
        game, (a, b, c) = new_game(3, rules=rules)
        set_table(game, {a: cards("2H"), b: cards("3D", "4S"), c: cards("6D", "8H")},
                  pile=cards("5H", "9C"))
        moved = cards("4S")[0]

        result = game.slap(b)

        assert not result.valid
        assert not game.burn_in_progress
        assert hand(game, b) == cards("3D")
        assert moved in hand(game, a) or moved in hand(game, c)
        assert game.burn_pile == []

    def test_empty_handed_miss_costs_nothing(self):
        game, (a, b, c) = new_game(3)
        set_table(game, {a: cards("2H"), b: cards("3D", "4S")}, pile=cards("5H", "9C"))
        version = game.version
        result = game.slap(c)
        assert not result.valid
        assert not game.burn_in_progress
        assert hand(game, c) == []
        assert game.version == version + 1

    def test_empty_handed_player_can_slap_back_in(self):
        game, (a, b, c) = new_game(3)
        set_table(game, {a: cards("2H"), b: cards("3D")}, pile=cards("5H", "5D"))
        assert game.slap(c).valid
        assert len(hand(game, c)) == 2
        assert game.turns.current() == c

    def test_no_slapping_during_challenge(self):
        set_table(self.game, {self.a: cards("2H", "KC"), self.b: cards("3D")})
        self.game.play_card(self.a)
        with pytest.raises(InvalidIntent) as exc:
            self.game.slap(self.b)
        assert exc.value.code == "challenge_active"


# =============================================================================
# Face-Card Challenge Tests
# =============================================================================

class TestChallenge:

    def test_king_failure_goes_to_seat_after_king(self):
        game, (a, b, c) = new_game(3)
        set_table(game, {
            a: cards("4C", "KH"),
            b: cards("6D", "2D"),
            c: cards("7S", "3S"),
        })

        game.play_card(a)
        assert game.challenge.active
        assert game.challenge.attempts_left == 3
        assert game.turns.current() == b

        game.play_card(b)
        assert game.challenge.attempts_left == 2
        game.play_card(c)
        assert game.challenge.attempts_left == 1
        assert game.turns.current() == a

        game.play_card(a)

        assert not game.challenge.active
        assert game.center_pile == []
        assert len(hand(game, b)) == 5
        assert game.turns.current() == b
        assert game.turn_version == game.version
        assert game.pile_version == game.version

        with pytest.raises(StaleIntent) as exc:
            game.slap(c)
        assert exc.value.code == "pile_already_taken"

    def test_face_card_meets_challenge(self):
        game, (a, b) = new_game(2)
        set_table(game, {a: cards("2H", "QH"), b: cards("3D", "JD")})
        game.play_card(a)
        assert game.challenge.attempts_left == 2

        game.play_card(b)

        assert not game.challenge.active
        assert game.center_pile == cards("QH", "JD")
        assert game.turns.current() == a

    def test_jack_failure_in_two_player_game(self):
        game, (a, b) = new_game(2)
        set_table(game, {a: cards("2H", "JH"), b: cards("3D", "5D")})
        game.play_card(a)
        game.play_card(b)
        assert len(hand(game, b)) == 3
        assert game.turns.current() == b

    def test_face_cards_rule_off(self):
        game, (a, b) = new_game(2, rules=RuleSet(face_cards=False))
        set_table(game, {a: cards("2H", "KH"), b: cards("3D")})
        game.play_card(a)
        assert not game.challenge.active
        assert game.turns.current() == b


# =============================================================================
# Winning Tests
# =============================================================================

class TestWinning:

    def setup_method(self):
        self.game, (self.a, self.b) = new_game(2)
        self.events = []
        self.game.set_event_emitter(self.events.append)

    def ended_events(self):
        return [e for e in self.events if e.event_type == EventType.GAME_ENDED]

    def test_sole_holder_wins_once(self):
        set_table(self.game, {self.a: build_deck()})
        self.game.set_connected(self.a, True)

        assert self.game.phase == GamePhase.GAME_OVER
        assert self.game.winner_id == self.a
        assert len(self.ended_events()) == 1

        self.game.set_connected(self.b, False)
        assert len(self.ended_events()) == 1

    def test_no_turn_actions_after_game_over(self):
        set_table(self.game, {self.a: build_deck()})
        self.game.set_connected(self.a, True)
        for intent in (self.game.play_card, self.game.slap, self.game.burn):
            with pytest.raises(InvalidIntent) as exc:
                intent(self.a)
            assert exc.value.code == "game_over"

    def test_playing_last_card_ends_game(self):
        set_table(self.game, {self.a: cards("2H"), self.b: cards("4S")})
        self.game.play_card(self.a)
        self.game.play_card(self.b)
        assert self.game.winner_id == self.a
        assert self.game.phase == GamePhase.GAME_OVER

    def test_nobody_holding_cards_is_a_draw(self):
        for player in self.game.players:
            player.hand = []
        self.game.center_pile = build_deck()
        self.game.set_connected(self.a, True)
        assert self.game.is_draw
        assert self.game.winner_id is None
        assert self.game.phase == GamePhase.GAME_OVER


# =============================================================================
# Play Again Tests
# =============================================================================

class TestPlayAgain:

    def finish(self, game: Game, winner: str) -> None:
        set_table(game, {winner: build_deck()})
        game.set_connected(winner, True)

    def shape(self, game: Game) -> tuple:
        return (
            game.phase,
            [len(p.hand) for p in game.players],
            len(game.center_pile),
            len(game.burn_pile),
            game.challenge,
            game.turns.current_index,
            game.winner_id,
            game.burn_in_progress,
        )

    def test_deals_fresh_game(self):
        game, (a, b) = new_game(2)
        self.finish(game, a)
        old_game_id = game.game_id

        game.play_again()

        assert game.phase == GamePhase.PLAYING
        assert [len(p.hand) for p in game.players] == [26, 26]
        assert game.winner_id is None
        assert game.game_id != old_game_id
        assert game.center_pile == []
        assert game.burn_pile == []
        assert game.turns.current() == a

    def test_twice_in_a_row_gives_same_shape(self):
        game, (a, b) = new_game(2)
        self.finish(game, b)
        game.play_again()
        first = self.shape(game)
        game.play_again()
        assert self.shape(game) == first

    def test_keeps_rules(self):
        game, (a, b) = new_game(2, rules=RuleSet(runs=False))
        self.finish(game, a)
        game.play_again()
        assert not game.rules.runs

    def test_alone_returns_to_lobby(self):
        game, (a, b) = new_game(2)
        game.leave(b)
        assert game.winner_id == a
        game.play_again()
        assert game.phase == GamePhase.WAITING
        assert hand(game, a) == []


# =============================================================================
# Leave Tests
# =============================================================================

class TestLeave:

    def test_leave_in_lobby(self):
        game = Game()
        a = game.join("Alice")
        game.join("Bob")
        game.leave(a)
        assert [p.name for p in game.players] == ["Bob"]
        assert game.version == 3

    def test_current_player_leaves(self):
        game, (a, b, c) = new_game(3)
        forfeited = len(hand(game, a))

        game.leave(a)

        assert len(game.burn_pile) == forfeited
        assert game.turns.current() == b
        assert game.turn_version == game.version
        assert game.snapshot().total_cards() == 52

    def test_other_player_leaving_keeps_turn(self):
        game, (a, b, c) = new_game(3)
        game.turns.set_current(c)
        game.leave(a)
        assert game.turns.current() == c

    def test_burn_offender_leaving_clears_burn(self):
        game, (a, b, c) = new_game(3)
        set_table(game, {a: cards("2H"), b: cards("3D", "4S"), c: cards("6D")},
                  pile=cards("5H", "9C"))
        game.slap(b)
        assert game.burn_in_progress

        game.leave(b)

        assert not game.burn_in_progress
        assert game.burn_offender_id is None
        game.play_card(a)

    def test_challenger_leaving_cancels_challenge(self):
        game, (a, b, c) = new_game(3)
        set_table(game, {a: cards("2H", "KH"), b: cards("3D"), c: cards("6D")})
        game.play_card(a)
        assert game.challenge.active

        game.leave(a)

        assert not game.challenge.active
        assert game.turns.current() == b
        assert game.snapshot().total_cards() == 52

    def test_two_player_leave_hands_win_to_other(self):
        game, (a, b) = new_game(2)
        game.leave(b)
        assert game.phase == GamePhase.GAME_OVER
        assert game.winner_id == a

    def test_last_player_leaving_resets_table(self):
        game, (a, b) = new_game(2)
        game.leave(b)
        game.leave(a)
        assert game.phase == GamePhase.WAITING
        assert game.players == []
        assert game.burn_pile == []
        game.join("Zoe")
        assert len(game.players) == 1

    def test_unknown_player(self):
        game, _ = new_game(2)
        with pytest.raises(InvalidIntent) as exc:
            game.leave("nobody")
        assert exc.value.code == "unknown_player"


# =============================================================================
# Conservation and Invariants
# =============================================================================

class TestConservation:

    @pytest.mark.parametrize("policy", [p.value for p in PenaltyPolicy])
    def test_random_play_conserves_cards(self, policy):
        rng = random.Random(7)
        game, _ = new_game(3, rules=RuleSet(penalty_policy=policy), seed=7)
        turn_actions = [game.play_card, game.play_card, game.play_card, game.slap, game.burn]

        for _ in range(3000):
            ids = [p.id for p in game.players]
            try:
                if not game.game_started:
                    if len(ids) < 3:
                        game.join(rng.choice(NAMES))
                    else:
                        game.start_game()
                elif game.phase == GamePhase.GAME_OVER:
                    game.play_again()
                else:
                    roll = rng.random()
                    if roll < 0.01:
                        game.leave(rng.choice(ids))
                    elif roll < 0.02:
                        game.play_again()
                    else:
                        rng.choice(turn_actions)(rng.choice(ids))
            except (InvalidIntent, StaleIntent, IllegalConfig):
                pass
            if game.game_started:
                assert game.snapshot().total_cards() == 52

        assert not game.halted
        assert game.rules.penalty_policy == policy


class TestInvariants:

    def test_lost_card_halts_game(self):
        game, (a, b) = new_game(2)
        hand(game, a).pop()

        with pytest.raises(InvariantViolation) as exc:
            game.set_connected(a, True)
        assert exc.value.code == "card_count_mismatch"
        assert game.halted
        assert game.snapshot().halted

        with pytest.raises(InvariantViolation) as exc:
            game.play_card(a)
        assert exc.value.code == "session_halted"

    def test_duplicate_card_halts_game(self):
        game, (a, b) = new_game(2)
        hand(game, a)[0] = hand(game, b)[0]
        with pytest.raises(InvariantViolation) as exc:
            game.set_connected(a, True)
        assert exc.value.code == "duplicate_card"

    def test_exhausted_challenge_halts_game(self):
        game, (a, b) = new_game(2)
        game.challenge = Challenge(
            active=True,
            triggering_card=cards("KH")[0],
            attempts_left=0,
            initiating_player_id=b,
        )
        with pytest.raises(InvariantViolation) as exc:
            game.play_card(a)
        assert exc.value.code == "challenge_exhausted"
        assert game.halted


# =============================================================================
# Event Tests
# =============================================================================

class TestEvents:

    def setup_method(self):
        self.game = Game(seed=1)
        self.events = []
        self.game.set_event_emitter(self.events.append)

    def test_lobby_events(self):
        self.game.join("Alice")
        self.game.join("Bob")
        self.game.start_game()

        assert [e.event_type for e in self.events] == [
            EventType.PLAYER_JOINED,
            EventType.PLAYER_JOINED,
            EventType.GAME_STARTED,
        ]
        assert [e.version for e in self.events] == [1, 2, 3]
        assert [e.sequence_num for e in self.events] == [1, 2, 3]

    def test_rejected_intent_emits_nothing(self):
        self.game.join("Alice")
        self.events.clear()
        with pytest.raises(IllegalConfig):
            self.game.start_game()
        assert self.events == []

    def test_play_again_restarts_sequence(self):
        self.game.join("Alice")
        self.game.join("Bob")
        self.game.start_game()
        self.events.clear()

        self.game.play_again()

        assert [e.event_type for e in self.events] == [EventType.GAME_RESET, EventType.GAME_STARTED]
        assert [e.sequence_num for e in self.events] == [1, 2]
        assert all(e.game_id == self.game.game_id for e in self.events)

    def test_missed_slap_and_burn_events(self):
        a = self.game.join("Alice")
        b = self.game.join("Bob")
        self.game.start_game()
        set_table(self.game, {a: cards("2H"), b: cards("3D", "4S")}, pile=cards("5H", "9C"))
        self.events.clear()

        self.game.slap(b)
        self.game.burn(b)

        assert [e.event_type for e in self.events] == [EventType.SLAP_MISSED, EventType.CARD_BURNED]
        assert self.events[1].data["card"] == {"rank": "4", "suit": "spades"}


# =============================================================================
# Snapshot Tests
# =============================================================================

class TestSnapshot:

    def setup_method(self):
        self.game, (self.a, self.b) = new_game(2)

    def test_snapshot_is_immutable(self):
        snapshot = self.game.snapshot()
        with pytest.raises(FrozenInstanceError):
            snapshot.version = 99

    def test_snapshot_unaffected_by_later_intents(self):
        snapshot = self.game.snapshot()
        self.game.play_card(self.a)
        assert snapshot.center_pile == ()
        assert snapshot.player(self.a).hand_size == 26
        assert snapshot.version == self.game.version - 1

    def test_viewer_sees_only_own_hand(self):
        data = self.game.snapshot().to_dict(self.a)
        players = {p["id"]: p for p in data["players"]}
        assert len(players[self.a]["hand"]) == 26
        assert players[self.b]["hand"] is None
        assert players[self.b]["hand_size"] == 26
        assert data["current_player_id"] == self.a

    def test_reveal_hands(self):
        data = self.game.snapshot().to_dict(None, reveal_hands=True)
        assert all(len(p["hand"]) == 26 for p in data["players"])

    def test_spectator_sees_no_hands(self):
        data = self.game.snapshot().to_dict()
        assert all(p["hand"] is None for p in data["players"])
        assert data["burn_pile_size"] == 0
        assert data["halted"] is False

    def test_halted_flag_in_dict(self):
        hand(self.game, self.a).pop()
        with pytest.raises(InvariantViolation):
            self.game.play_card(self.a)
        assert self.game.snapshot().to_dict(self.a)["halted"] is True
