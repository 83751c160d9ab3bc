"""Deck composition, shuffling and dealing.

The full deck holds 108 cards. One shuffled deck is built when a game starts
and every round is dealt from the top of what remains.
"""
import random
from typing import Iterable, List, Optional, Sequence, Tuple

from sushigo.models import Card, CardKind, NIGIRI_VALUES, PlayerSession
from .errors import CapacityExceeded


# (kind, variant, value, copies)
COMPOSITION: Tuple[Tuple[CardKind, Optional[str], Optional[int], int], ...] = (
    (CardKind.MAKI_ROLL, None, 1, 6),
    (CardKind.MAKI_ROLL, None, 2, 12),
    (CardKind.MAKI_ROLL, None, 3, 8),
    (CardKind.TEMPURA, None, None, 14),
    (CardKind.SASHIMI, None, None, 14),
    (CardKind.DUMPLING, None, None, 14),
    (CardKind.NIGIRI, 'Squid', NIGIRI_VALUES['Squid'], 5),
    (CardKind.NIGIRI, 'Salmon', NIGIRI_VALUES['Salmon'], 10),
    (CardKind.NIGIRI, 'Egg', NIGIRI_VALUES['Egg'], 5),
    (CardKind.WASABI, None, None, 6),
    (CardKind.CHOPSTICKS, None, None, 4),
    (CardKind.PUDDING, None, None, 10),
)

CARDS_PER_PLAYER = {
    2: 10,
    3: 9,
    4: 8,
    5: 7,
}


def make_deck() -> List[Card]:
    """Build the unshuffled deck in composition order."""
    deck: List[Card] = []
    counters = {}
    for kind, variant, value, copies in COMPOSITION:
        prefix = kind.value if variant is None else f"{kind.value}_{variant.lower()}"
        for _ in range(copies):
            n = counters.get(prefix, 0)
            counters[prefix] = n + 1
            deck.append(Card(id=f"{prefix}_{n}", kind=kind, variant=variant, value=value))
    return deck


def cards_per_player(player_count: int, override: int = 0) -> int:
    if override and override > 0:
        return override
    try:
        return CARDS_PER_PLAYER[player_count]
    except KeyError:
        raise CapacityExceeded(f"Invalid player count: {player_count} (must be 2-5)")


class Dealer:
    """Produces the shuffled deck for one game.

    Pass ``seed`` for a reproducible order.
    """

    def __init__(self, seed=None):
        self.seed = seed

    def new_deck(self) -> List[Card]:
        deck = make_deck()
        random.Random(self.seed).shuffle(deck)
        return deck


class StackedDealer(Dealer):
    """Deals a fixed card order. Used by playtests and the test-suite."""

    def __init__(self, cards: Iterable[Card]):
        super().__init__(seed=None)
        self.cards = list(cards)

    def new_deck(self) -> List[Card]:
        return list(self.cards)


def deal_hands(deck: List[Card], players: Sequence[PlayerSession], hand_size: int) -> List[Card]:
    """Give each player ``hand_size`` cards off the top of ``deck``.

    Returns the remaining deck. Seats are dealt in order, one full hand at a time.
    """
    needed = hand_size * len(players)
    if len(deck) < needed:
        raise CapacityExceeded(f"Not enough cards in deck: need {needed}, have {len(deck)}")
    for i, player in enumerate(players):
        player.hand = list(deck[i * hand_size:(i + 1) * hand_size])
    return deck[needed:]
