"""Scoring rules.

Every function here is pure: it reads card lists and returns points, so the
same collections always score the same. Collections are chronological, which
matters for wasabi/nigiri pairing.
"""
from typing import Dict, Iterable, List, Mapping, Sequence

from sushigo.models import Card, CardKind, PlayerSession


DUMPLING_POINTS = (0, 1, 3, 6, 10, 15)

MAKI_FIRST = 6
MAKI_SECOND = 3
PUDDING_BONUS = 6

CATEGORIES = ('tempura', 'sashimi', 'dumpling', 'nigiri', 'maki')


def _count(cards: Iterable[Card], kind: CardKind) -> int:
    return sum(1 for c in cards if c.kind == kind)


def score_tempura(cards: Iterable[Card]) -> int:
    return (_count(cards, CardKind.TEMPURA) // 2) * 5


def score_sashimi(cards: Iterable[Card]) -> int:
    return (_count(cards, CardKind.SASHIMI) // 3) * 10


def score_dumplings(cards: Iterable[Card]) -> int:
    n = _count(cards, CardKind.DUMPLING)
    return DUMPLING_POINTS[min(n, len(DUMPLING_POINTS) - 1)]


def score_nigiri(cards: Sequence[Card]) -> int:
    """Nigiri points, tripling each nigiri laid on an unused wasabi.

    A wasabi only boosts nigiri collected after it. Each wasabi boosts one.
    """
    total = 0
    unused_wasabi = 0
    for card in cards:
        if card.kind == CardKind.WASABI:
            unused_wasabi += 1
        elif card.kind == CardKind.NIGIRI:
            if unused_wasabi:
                unused_wasabi -= 1
                total += card.points * 3
            else:
                total += card.points
    return total


def maki_icons(cards: Iterable[Card]) -> int:
    return sum(c.points for c in cards if c.kind == CardKind.MAKI_ROLL)


def score_maki(icons: Mapping[str, int]) -> Dict[str, int]:
    """Award maki majority points from each player's icon total.

    Most icons earns 6, second most earns 3. Tied players split an award
    evenly, rounded down; the remainder is discarded. A tie for first uses
    up both awards, so no second place is paid. Zero icons never score.
    """
    points = {pid: 0 for pid in icons}
    ranked = sorted({n for n in icons.values() if n > 0}, reverse=True)
    if not ranked:
        return points

    first = [pid for pid, n in icons.items() if n == ranked[0]]
    for pid in first:
        points[pid] = MAKI_FIRST // len(first)
    if len(first) > 1 or len(ranked) < 2:
        return points

    second = [pid for pid, n in icons.items() if n == ranked[1]]
    for pid in second:
        points[pid] = MAKI_SECOND // len(second)
    return points


def score_collection(cards: Sequence[Card]) -> Dict[str, int]:
    """Per-category points for one collection, excluding maki (relative)."""
    return {
        'tempura': score_tempura(cards),
        'sashimi': score_sashimi(cards),
        'dumpling': score_dumplings(cards),
        'nigiri': score_nigiri(cards),
    }


def score_round(collections: Mapping[str, Sequence[Card]]) -> Dict[str, Dict[str, int]]:
    """Score every player's end-of-round collection.

    Returns ``{player_id: {category: points, ..., 'total': points}}``.
    Chopsticks, wasabi and pudding score nothing here.
    """
    maki = score_maki({pid: maki_icons(cards) for pid, cards in collections.items()})
    results = {}
    for pid, cards in collections.items():
        breakdown = score_collection(cards)
        breakdown['maki'] = maki[pid]
        breakdown['total'] = sum(breakdown[c] for c in CATEGORIES)
        results[pid] = breakdown
    return results


def score_pudding(counts: Mapping[str, int]) -> Dict[str, int]:
    """End-of-game pudding bonus and penalty.

    Most puddings gains 6, fewest loses 6, ties split evenly rounding toward
    zero. With two players nobody loses points. If everyone holds the same
    number there is neither bonus nor penalty.
    """
    points = {pid: 0 for pid in counts}
    if not counts:
        return points
    most = max(counts.values())
    fewest = min(counts.values())
    if most == fewest:
        return points

    leaders = [pid for pid, n in counts.items() if n == most]
    for pid in leaders:
        points[pid] += PUDDING_BONUS // len(leaders)

    if len(counts) > 2:
        trailers = [pid for pid, n in counts.items() if n == fewest]
        for pid in trailers:
            points[pid] -= PUDDING_BONUS // len(trailers)
    return points


def rank_players(players: Sequence[PlayerSession]) -> List[dict]:
    """Final standings: score, then pudding count, then seating order."""
    seated = list(enumerate(players))
    seated.sort(key=lambda item: (-item[1].total_score, -len(item[1].pudding_collection), item[0]))
    rankings = []
    for rank, (_, p) in enumerate(seated, start=1):
        rankings.append({
            'rank': rank,
            'player_id': p.id,
            'name': p.name,
            'total_score': p.total_score,
            'pudding_count': len(p.pudding_collection),
            'pudding_points': p.pudding_points,
            'round_scores': list(p.round_scores),
        })
    return rankings
