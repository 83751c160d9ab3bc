"""Process-wide table of live games.

The registry lock only guards the id -> table map. Game state is guarded
by each table's own lock, so actions on different games never contend.
Lock order is registry first, then table.
"""
import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from sushigo.models import GameSession
from .deck import Dealer
from .errors import NotFound
from .naming import generate_game_id
from .rounds import TableRules
from .session import GameTable, Outbound

logger = logging.getLogger(__name__)


class GameRegistry:
    def __init__(self, rules: Optional[TableRules] = None,
                 dealer_factory: Optional[Callable[[], Dealer]] = None):
        self.rules = rules or TableRules()
        self.dealer_factory = dealer_factory or Dealer
        self._tables: Dict[str, GameTable] = {}
        self._lock = threading.Lock()

    def create_game(self) -> GameTable:
        with self._lock:
            game_id = generate_game_id(self._tables)
            table = GameTable(GameSession(id=game_id, total_rounds=self.rules.num_rounds),
                              self.rules, self.dealer_factory())
            self._tables[game_id] = table
        logger.info(f"[create] game={game_id}")
        return table

    def get(self, game_id: str) -> GameTable:
        with self._lock:
            table = self._tables.get(game_id)
        if table is None:
            raise NotFound(f"Game {game_id} not found")
        return table

    def create_or_join(self, display_name: Optional[str] = None, game_id: Optional[str] = None,
                       player_id: Optional[str] = None) -> Tuple[GameTable, str, bool, List[Outbound]]:
        """Join ``game_id``, or create a fresh game when it is empty.

        A known ``player_id`` reclaims its seat the same way a known display
        name does. Returns ``(table, player_id, reconnected, messages)``.
        """
        table = self.get(game_id) if game_id else self.create_game()
        seat_id, reconnected, out = table.join((display_name or '').strip(), player_id)
        return table, seat_id, reconnected, out

    def list_games(self) -> List[dict]:
        with self._lock:
            tables = list(self._tables.values())
        return [t.summary() for t in tables]

    def delete_game(self, game_id: str) -> GameTable:
        with self._lock:
            table = self._tables.pop(game_id, None)
            if table is None:
                raise NotFound(f"Game {game_id} not found")
            with table.lock:
                table.closed = True
        logger.info(f"[delete] game={game_id}")
        return table

    def discard_if_abandoned(self, game_id: str) -> bool:
        """Drop a game nobody is connected to any more."""
        with self._lock:
            table = self._tables.get(game_id)
            if table is None:
                return False
            with table.lock:
                if not table.abandoned:
                    return False
                table.closed = True
            del self._tables[game_id]
        logger.info(f"[abandoned] game={game_id} deleted")
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._tables)
