import random
from typing import Optional

from sushigo.models import Phase
from .deck import Dealer
from .naming import PLAYER_NAMES
from .registry import GameRegistry
from .rounds import TableRules


def simulate_game(player_count: int, rules: Optional[TableRules] = None,
                  rng: Optional[random.Random] = None, dealer: Optional[Dealer] = None) -> dict:
    """Play one game to the end with random legal picks.

    Seats sometimes use chopsticks when they own a pair and hold two cards.
    Returns the final result (winner and rankings).
    """
    rng = rng or random.Random()
    registry = GameRegistry(rules, dealer_factory=(lambda: dealer) if dealer else None)
    table = registry.create_game()
    seats = []
    for name in PLAYER_NAMES[:player_count]:
        _, player_id, _, _ = registry.create_or_join(name, table.id)
        seats.append(player_id)

    table.start(seats[0])
    game = table.game
    while game.phase != Phase.GAME_END:
        for player in list(game.players):
            if game.phase != Phase.SELECTING or player.has_selected:
                continue
            hand_size = len(player.hand)
            first = rng.randrange(hand_size)
            if player.has_chopsticks_available and hand_size > 1 and rng.random() < 0.3:
                second = rng.choice([i for i in range(hand_size) if i != first])
                table.select_card(player.id, first, True, second)
            else:
                table.select_card(player.id, first)
    return game.final_result
