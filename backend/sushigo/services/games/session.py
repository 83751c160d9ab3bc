"""Game session controller.

A ``GameTable`` owns one ``GameSession`` and serialises every action on it
with a per-table lock. Actions return the messages to push; callers send them
after the lock has been released.
"""
import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sushigo.models import GameSession, Phase, PlayerSession
from . import rounds
from .deck import Dealer
from .errors import CapacityExceeded, InvalidPhase, NotFound
from .naming import generate_player_id, generate_player_name
from .projection import broadcast_view, private_view

logger = logging.getLogger(__name__)


@dataclass
class Outbound:
    event: str
    payload: dict
    # None addresses every seat in the game
    player_id: Optional[str] = None


class GameTable:
    def __init__(self, game: GameSession, rules: rounds.TableRules, dealer: Dealer):
        self.game = game
        self.rules = rules
        self.dealer = dealer
        self.lock = threading.Lock()
        self.closed = False

    @property
    def id(self) -> str:
        return self.game.id

    def _check_open(self) -> None:
        if self.closed:
            raise NotFound(f"Game {self.game.id} not found")

    def _snapshots(self) -> List[Outbound]:
        return [Outbound('game_state', private_view(self.game, p.id), p.id) for p in self.game.players]

    def _publish(self, events: List[rounds.Event]) -> List[Outbound]:
        out: List[Outbound] = []
        for ev in events:
            if ev.name == 'revealed':
                # views captured before the hands were passed
                out.extend(Outbound('game_state', view, pid) for pid, view in ev.payload.items())
            else:
                out.append(Outbound(ev.name, ev.payload))
        out.extend(self._snapshots())
        return out

    def join(self, name: str, player_id: Optional[str] = None) -> Tuple[str, bool, List[Outbound]]:
        """Seat a player, or reattach a returning one by id or display name.

        An empty name gets a generated one not already at the table.

        Returns ``(player_id, reconnected, messages)``.
        """
        with self.lock:
            self._check_open()
            game = self.game
            if not name:
                name = self._unused_name()
            existing = (player_id and game.find_player(player_id)) or game.find_player_by_name(name)
            if existing is not None:
                existing.connected = True
                logger.info(f"[rejoin] game={game.id} player={existing.id} name={name!r}")
                return existing.id, True, self._snapshots()

            if game.started:
                raise InvalidPhase('This game has already started')
            if len(game.players) >= self.rules.max_players:
                raise CapacityExceeded(f"Game is full (max {self.rules.max_players} players)")

            player = PlayerSession(id=player_id or generate_player_id(), name=name)
            game.players.append(player)
            logger.info(f"[join] game={game.id} player={player.id} seats={len(game.players)}")
            return player.id, False, self._snapshots()

    def _unused_name(self) -> str:
        taken = {p.name for p in self.game.players}
        name = generate_player_name()
        candidate, n = name, 2
        while candidate in taken:
            candidate = f"{name} {n}"
            n += 1
        return candidate

    def start(self, requester_id: str) -> List[Outbound]:
        with self.lock:
            self._check_open()
            events = rounds.start_game(self.game, requester_id, self.rules, self.dealer)
            return self._publish(events)

    def select_card(self, player_id: str, card_index, use_chopsticks: bool = False,
                    second_card_index=None) -> List[Outbound]:
        with self.lock:
            self._check_open()
            events = rounds.select_card(self.game, player_id, card_index, use_chopsticks, second_card_index)
            return self._publish(events)

    def withdraw_card(self, player_id: str) -> List[Outbound]:
        with self.lock:
            self._check_open()
            events = rounds.withdraw_card(self.game, player_id)
            return self._publish(events)

    def remove_player(self, player_id: str, requester_id: Optional[str] = None) -> List[Outbound]:
        """Kick a seat. Only allowed before the game starts."""
        with self.lock:
            self._check_open()
            game = self.game
            if requester_id is not None and game.find_player(requester_id) is None:
                raise NotFound(f"Player {requester_id} is not in game {game.id}")
            if game.phase != Phase.WAITING:
                raise InvalidPhase('Players can only be removed before the game starts')
            target = game.find_player(player_id)
            if target is None:
                raise NotFound(f"Player {player_id} is not in game {game.id}")
            game.players.remove(target)
            logger.info(f"[kick] game={game.id} player={player_id} seats={len(game.players)}")
            out = [Outbound('player_kicked', {'game_id': game.id, 'message': 'You have been kicked from the game'}, player_id)]
            out.extend(self._snapshots())
            return out

    def disconnect(self, player_id: str) -> List[Outbound]:
        """Apply the connection-loss policy to a seat.

        Before the start the seat is freed. Afterwards the seat stays in the
        rotation, is flagged disconnected and its pending pick is withdrawn,
        so the turn waits for the player to rejoin under the same name.
        """
        with self.lock:
            if self.closed:
                return []
            game = self.game
            player = game.find_player(player_id)
            if player is None:
                return []
            if game.phase == Phase.WAITING:
                game.players.remove(player)
                logger.info(f"[leave] game={game.id} player={player_id} seats={len(game.players)}")
            else:
                player.connected = False
                if game.phase == Phase.SELECTING:
                    player.pending_selection = None
                logger.info(f"[disconnect] game={game.id} player={player_id} phase={game.phase.value}")
            return self._snapshots()

    @property
    def abandoned(self) -> bool:
        return not self.game.players or not any(p.connected for p in self.game.players)

    def view(self, player_id: Optional[str] = None) -> dict:
        with self.lock:
            self._check_open()
            if player_id is not None and self.game.find_player(player_id) is not None:
                return private_view(self.game, player_id)
            return broadcast_view(self.game)

    def summary(self) -> dict:
        with self.lock:
            return self.game.summary()
