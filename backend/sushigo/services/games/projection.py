"""Views of a game session for clients.

The broadcast view is safe to show anyone: it carries hand sizes but never
hand contents. The private view adds one player's own hand.
"""
from sushigo.models import GameSession
from .errors import NotFound


def broadcast_view(game: GameSession) -> dict:
    view = game.to_dict()
    if game.final_result is not None:
        view['final_result'] = game.final_result
    return view


def private_view(game: GameSession, player_id: str) -> dict:
    player = game.find_player(player_id)
    if player is None:
        raise NotFound(f"Player {player_id} is not in game {game.id}")
    view = broadcast_view(game)
    view['my_player_id'] = player.id
    view['my_hand'] = [c.to_dict() for c in player.hand]
    view['has_chopsticks_available'] = player.has_chopsticks_available
    view['my_selection'] = player.pending_selection.to_dict() if player.pending_selection else None
    return view
