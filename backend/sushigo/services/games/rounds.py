"""Round and turn state machine.

waiting -> (deal) -> selecting -> (resolve) -> selecting | round scoring
round scoring -> (deal) | game scoring -> game_end

Dealing, resolving and scoring run synchronously inside the action that
triggers them. Each step returns the events a caller should push to clients;
``revealed`` marks the point where selections have been moved into
collections but hands have not been passed yet.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from sushigo.models import CardKind, GameSession, Phase, Selection
from . import scoring
from .deck import Dealer, cards_per_player, deal_hands
from .projection import private_view
from .errors import AlreadySelected, CapacityExceeded, InvalidPhase, InvalidSelection, NotFound

logger = logging.getLogger(__name__)


@dataclass
class Event:
    name: str
    payload: dict = field(default_factory=dict)


@dataclass(frozen=True)
class TableRules:
    min_players: int = 2
    max_players: int = 5
    num_rounds: int = 3
    # 0 deals by player count
    cards_per_hand: int = 0

    @classmethod
    def from_config(cls, config: Mapping) -> 'TableRules':
        return cls(
            min_players=int(config.get('MIN_PLAYERS', 2)),
            max_players=int(config.get('MAX_PLAYERS', 5)),
            num_rounds=int(config.get('NUM_ROUNDS', 3)),
            cards_per_hand=int(config.get('CARDS_PER_HAND', 0) or 0),
        )


def _require_player(game: GameSession, player_id: str):
    player = game.find_player(player_id)
    if player is None:
        raise NotFound(f"Player {player_id} is not in game {game.id}")
    return player


def _valid_index(index, hand_size: int) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < hand_size


def start_game(game: GameSession, requester_id: str, rules: TableRules, dealer: Dealer) -> List[Event]:
    if game.phase != Phase.WAITING:
        raise InvalidPhase('Game has already started')
    _require_player(game, requester_id)

    count = len(game.players)
    if count < rules.min_players:
        raise CapacityExceeded(f"At least {rules.min_players} players are required to start")
    if count > rules.max_players:
        raise CapacityExceeded(f"At most {rules.max_players} players can play")

    hand_size = cards_per_player(count, rules.cards_per_hand)
    deck = dealer.new_deck()
    needed = count * hand_size * rules.num_rounds
    if len(deck) < needed:
        raise CapacityExceeded(f"Deck too small: need {needed} cards, have {len(deck)}")

    game.deck = deck
    game.hand_size = hand_size
    game.total_rounds = rules.num_rounds
    for p in game.players:
        p.hand = []
        p.collection = []
        p.pudding_collection = []
        p.round_scores = []
        p.pudding_points = 0
        p.total_score = 0
        p.pending_selection = None
    logger.info(f"[start] game={game.id} players={count} hand_size={hand_size} rounds={rules.num_rounds}")
    return deal_round(game)


def deal_round(game: GameSession) -> List[Event]:
    game.deck = deal_hands(game.deck, game.players, game.hand_size)
    for p in game.players:
        p.pending_selection = None
    game.current_round += 1
    game.turns_remaining = game.hand_size
    game.phase = Phase.SELECTING
    logger.info(f"[deal] game={game.id} round={game.current_round} deck_left={len(game.deck)}")
    return []


def select_card(
    game: GameSession,
    player_id: str,
    card_index,
    use_chopsticks: bool = False,
    second_card_index=None,
) -> List[Event]:
    """Record a player's secret pick. Resolves the turn once everyone has picked."""
    if game.phase != Phase.SELECTING:
        raise InvalidPhase('Cards can only be selected while players are selecting')
    player = _require_player(game, player_id)
    if player.pending_selection is not None:
        raise AlreadySelected('You have already selected a card this turn')

    hand_size = len(player.hand)
    if not _valid_index(card_index, hand_size):
        raise InvalidSelection(f"Invalid card index: {card_index}")

    if use_chopsticks:
        if not player.has_chopsticks_available:
            raise InvalidSelection('You have no chopsticks to use')
        if not _valid_index(second_card_index, hand_size):
            raise InvalidSelection(f"Invalid second card index: {second_card_index}")
        if second_card_index == card_index:
            raise InvalidSelection('Chopsticks need two different cards')
        selection = Selection(card_index, second_card_index)
    else:
        if second_card_index is not None:
            raise InvalidSelection('A second card needs chopsticks')
        selection = Selection(card_index)

    player.pending_selection = selection
    logger.debug(f"[select] game={game.id} player={player.id} chopsticks={selection.uses_chopsticks}")

    if all(p.pending_selection is not None for p in game.players):
        return resolve_turn(game)
    return []


def withdraw_card(game: GameSession, player_id: str) -> List[Event]:
    """Take back a pick before the turn resolves."""
    if game.phase != Phase.SELECTING:
        raise InvalidPhase('Selections can only be withdrawn while players are selecting')
    player = _require_player(game, player_id)
    if player.pending_selection is None:
        raise InvalidPhase('There is no selection to withdraw this turn')
    player.pending_selection = None
    logger.debug(f"[withdraw] game={game.id} player={player.id}")
    return []


def resolve_turn(game: GameSession) -> List[Event]:
    game.phase = Phase.REVEALING
    for p in game.players:
        sel: Optional[Selection] = p.pending_selection
        picked = [sel.primary_index]
        if sel.secondary_index is not None:
            picked.append(sel.secondary_index)
        cards = [p.hand[i] for i in picked]
        # Higher index first so the lower one does not shift
        for i in sorted(picked, reverse=True):
            del p.hand[i]
        p.collection.extend(cards)
        p.pending_selection = None

    events = [Event('revealed', {p.id: private_view(game, p.id) for p in game.players})]

    # Seat i receives the hand seat i-1 held
    hands = [p.hand for p in game.players]
    for i, p in enumerate(game.players):
        p.hand = hands[i - 1]

    game.turns_remaining -= 1
    logger.info(f"[resolve] game={game.id} round={game.current_round} turns_left={game.turns_remaining}")

    # Chopsticks can drain a hand early; the round stops at the first empty one
    if game.turns_remaining <= 0 or any(not p.hand for p in game.players):
        events.extend(score_round(game))
    else:
        game.phase = Phase.SELECTING
    return events


def score_round(game: GameSession) -> List[Event]:
    game.phase = Phase.ROUND_END
    results = scoring.score_round({p.id: p.collection for p in game.players})
    for p in game.players:
        points = results[p.id]['total']
        p.round_scores.append(points)
        p.total_score += points
        p.pudding_collection.extend(c for c in p.collection if c.kind == CardKind.PUDDING)
        p.collection = []
        p.hand = []
        p.pending_selection = None
    game.turns_remaining = 0

    summary = {
        'round': game.current_round,
        'scores': [
            dict(results[p.id], player_id=p.id, name=p.name, total_score=p.total_score)
            for p in game.players
        ],
    }
    game.round_results.append(summary)
    logger.info(f"[round_end] game={game.id} round={game.current_round}")
    events = [Event('round_end', summary)]

    if game.current_round >= game.total_rounds:
        events.append(score_game(game))
    else:
        events.extend(deal_round(game))
    return events


def score_game(game: GameSession) -> Event:
    bonus = scoring.score_pudding({p.id: len(p.pudding_collection) for p in game.players})
    for p in game.players:
        p.pudding_points = bonus[p.id]
        p.total_score += bonus[p.id]
    rankings = scoring.rank_players(game.players)
    game.final_result = {
        'winner': rankings[0]['player_id'] if rankings else None,
        'rankings': rankings,
    }
    game.phase = Phase.GAME_END
    logger.info(f"[game_end] game={game.id} winner={game.final_result['winner']}")
    return Event('game_end', game.final_result)
