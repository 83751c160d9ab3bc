from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class CardKind(str, Enum):
    MAKI_ROLL = 'maki_roll'
    TEMPURA = 'tempura'
    SASHIMI = 'sashimi'
    DUMPLING = 'dumpling'
    NIGIRI = 'nigiri'
    WASABI = 'wasabi'
    CHOPSTICKS = 'chopsticks'
    PUDDING = 'pudding'


class Phase(str, Enum):
    WAITING = 'waiting'
    SELECTING = 'selecting'
    REVEALING = 'revealing'
    ROUND_END = 'round_end'
    GAME_END = 'game_end'


# Base points per nigiri species
NIGIRI_VALUES = {
    'Squid': 3,
    'Salmon': 2,
    'Egg': 1,
}


@dataclass(frozen=True)
class Card:
    """A single dealt card.

    ``value`` is the icon count for maki rolls and the base points for nigiri;
    ``variant`` names the nigiri species. Both are unset for other kinds.
    """

    id: str
    kind: CardKind
    variant: Optional[str] = None
    value: Optional[int] = None

    @property
    def points(self) -> int:
        if self.value is not None:
            return self.value
        if self.kind == CardKind.NIGIRI:
            return NIGIRI_VALUES.get(self.variant, 0)
        return 0

    def to_dict(self):
        data = {'id': self.id, 'kind': self.kind.value}
        if self.variant is not None:
            data['variant'] = self.variant
        if self.value is not None:
            data['value'] = self.value
        return data


@dataclass(frozen=True)
class Selection:
    primary_index: int
    secondary_index: Optional[int] = None

    @property
    def uses_chopsticks(self) -> bool:
        return self.secondary_index is not None

    def to_dict(self):
        return {
            'primary_index': self.primary_index,
            'secondary_index': self.secondary_index,
        }


@dataclass
class PlayerSession:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    # Chronological; wasabi/nigiri pairing depends on this order
    collection: List[Card] = field(default_factory=list)
    pudding_collection: List[Card] = field(default_factory=list)
    round_scores: List[int] = field(default_factory=list)
    pudding_points: int = 0
    total_score: int = 0
    pending_selection: Optional[Selection] = None
    connected: bool = True

    @property
    def has_chopsticks_available(self) -> bool:
        # Chopsticks stay in the collection after use; owning one is enough
        return any(c.kind == CardKind.CHOPSTICKS for c in self.collection)

    @property
    def has_selected(self) -> bool:
        return self.pending_selection is not None

    def to_dict(self):
        """Public fields only. The hand is never included here."""
        return {
            'id': self.id,
            'name': self.name,
            'hand_size': len(self.hand),
            'collection': [c.to_dict() for c in self.collection],
            'pudding_count': len(self.pudding_collection),
            'round_scores': list(self.round_scores),
            'score': self.total_score,
            'has_selected': self.has_selected,
            'connected': self.connected,
        }


@dataclass
class GameSession:
    id: str
    players: List[PlayerSession] = field(default_factory=list)
    phase: Phase = Phase.WAITING
    current_round: int = 0
    total_rounds: int = 3
    turns_remaining: int = 0
    hand_size: int = 0
    deck: List[Card] = field(default_factory=list)
    # Filled by round and game scoring
    round_results: List[dict] = field(default_factory=list)
    final_result: Optional[dict] = None

    def find_player(self, player_id: str) -> Optional[PlayerSession]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def find_player_by_name(self, name: str) -> Optional[PlayerSession]:
        for p in self.players:
            if p.name == name:
                return p
        return None

    @property
    def started(self) -> bool:
        return self.phase != Phase.WAITING

    def to_dict(self):
        return {
            'game_id': self.id,
            'phase': self.phase.value,
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'turns_remaining': self.turns_remaining,
            'players': [p.to_dict() for p in self.players],
        }

    def summary(self):
        return {
            'id': self.id,
            'player_count': len(self.players),
            'phase': self.phase.value,
            'round': self.current_round,
        }
