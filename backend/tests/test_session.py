import random
import threading

import pytest

from builders import card, maki, nigiri
from sushigo.models import Phase
from sushigo.services.games.deck import Dealer, StackedDealer
from sushigo.services.games.errors import CapacityExceeded, InvalidPhase, NotFound
from sushigo.services.games.registry import GameRegistry
from sushigo.services.games.rounds import TableRules
from sushigo.services.games.simulate import simulate_game


def seat(registry, names, game_id=None):
    table, first, _, _ = registry.create_or_join(names[0], game_id)
    ids = [first]
    for name in names[1:]:
        _, pid, _, _ = registry.create_or_join(name, table.id)
        ids.append(pid)
    return table, ids


def events(messages):
    return [m.event for m in messages]


def test_create_assigns_memorable_id_and_first_seat():
    registry = GameRegistry()
    table, player_id, reconnected, messages = registry.create_or_join('Alice')
    region, flower, number = table.id.split('-')
    assert 10 <= int(number) <= 99
    assert not reconnected
    assert len(player_id) == 32
    assert events(messages) == ['game_state']
    assert messages[0].player_id == player_id
    assert messages[0].payload['my_hand'] == []


def test_join_without_name_gets_a_unique_generated_name():
    registry = GameRegistry()
    table, ids = seat(registry, ['', ''])
    names = [p.name for p in table.game.players]
    assert len(set(names)) == 2
    assert all(names)
    assert len(set(ids)) == 2


def test_join_unknown_game():
    with pytest.raises(NotFound):
        GameRegistry().create_or_join('Alice', 'nara-kiku-12')


def test_join_full_table():
    registry = GameRegistry(TableRules(max_players=2))
    table, _ = seat(registry, ['A', 'B'])
    with pytest.raises(CapacityExceeded):
        registry.create_or_join('C', table.id)


def test_join_started_game_under_new_name_is_rejected():
    registry = GameRegistry()
    table, ids = seat(registry, ['A', 'B'])
    table.start(ids[0])
    with pytest.raises(InvalidPhase):
        registry.create_or_join('C', table.id)


def test_rejoin_by_name_reclaims_the_seat():
    registry = GameRegistry(dealer_factory=lambda: Dealer(seed=5))
    table, ids = seat(registry, ['A', 'B'])
    table.start(ids[0])
    hand = list(table.game.players[1].hand)
    table.disconnect(ids[1])
    assert not table.game.players[1].connected

    _, pid, reconnected, messages = registry.create_or_join('B', table.id)
    assert pid == ids[1]
    assert reconnected
    assert table.game.players[1].connected
    private = next(m.payload for m in messages if m.player_id == pid)
    assert [c['id'] for c in private['my_hand']] == [c.id for c in hand]


def test_rejoin_by_player_id_under_another_name():
    registry = GameRegistry()
    table, ids = seat(registry, ['A', 'B'])
    table.start(ids[0])
    table.disconnect(ids[0])
    _, pid, reconnected, _ = registry.create_or_join('Alice again', table.id, player_id=ids[0])
    assert (pid, reconnected) == (ids[0], True)
    assert [p.name for p in table.game.players] == ['A', 'B']


def test_new_seat_keeps_a_supplied_player_id():
    registry = GameRegistry()
    table, _, _, _ = registry.create_or_join('A', player_id='seat-a')
    assert table.game.players[0].id == 'seat-a'


def test_private_view_hides_other_hands():
    registry = GameRegistry(dealer_factory=lambda: Dealer(seed=9))
    table, ids = seat(registry, ['A', 'B', 'C'])
    messages = table.start(ids[0])
    states = {m.player_id: m.payload for m in messages if m.event == 'game_state'}
    assert set(states) == set(ids)
    for pid, view in states.items():
        own = table.game.find_player(pid)
        assert [c['id'] for c in view['my_hand']] == [c.id for c in own.hand]
        for p in view['players']:
            assert 'hand' not in p
            assert p['hand_size'] == 9
    public = table.view()
    assert 'my_hand' not in public


def test_select_pushes_state_and_resolution_snapshots():
    registry = GameRegistry(dealer_factory=lambda: Dealer(seed=1))
    table, ids = seat(registry, ['A', 'B'])
    table.start(ids[0])
    first = table.select_card(ids[0], 0)
    assert events(first) == ['game_state', 'game_state']
    seen = {p['id']: p['has_selected'] for p in first[1].payload['players']}
    assert seen == {ids[0]: True, ids[1]: False}

    second = table.select_card(ids[1], 0)
    # revealing snapshot, then the passed hands
    assert events(second) == ['game_state'] * 4
    assert second[0].payload['phase'] == 'revealing'
    assert second[-1].payload['phase'] == 'selecting'


def test_kick_only_in_lobby():
    registry = GameRegistry()
    table, ids = seat(registry, ['A', 'B', 'C'])
    messages = table.remove_player(ids[2], requester_id=ids[0])
    assert messages[0].event == 'player_kicked'
    assert messages[0].player_id == ids[2]
    assert [p.id for p in table.game.players] == ids[:2]

    table.start(ids[0])
    with pytest.raises(InvalidPhase):
        table.remove_player(ids[1], requester_id=ids[0])
    assert len(table.game.players) == 2


def test_kick_unknown_target_or_requester():
    registry = GameRegistry()
    table, ids = seat(registry, ['A', 'B'])
    with pytest.raises(NotFound):
        table.remove_player('nobody', requester_id=ids[0])
    with pytest.raises(NotFound):
        table.remove_player(ids[1], requester_id='stranger')


def test_disconnect_in_lobby_frees_the_seat():
    registry = GameRegistry()
    table, ids = seat(registry, ['A', 'B'])
    table.disconnect(ids[1])
    assert [p.id for p in table.game.players] == [ids[0]]


def test_disconnect_mid_round_keeps_seat_and_withdraws():
    registry = GameRegistry(dealer_factory=lambda: Dealer(seed=2))
    table, ids = seat(registry, ['A', 'B', 'C'])
    table.start(ids[0])
    table.select_card(ids[1], 0)
    hands = [list(p.hand) for p in table.game.players]

    table.disconnect(ids[1])
    player = table.game.players[1]
    assert player.pending_selection is None
    assert not player.connected
    assert [list(p.hand) for p in table.game.players] == hands

    # the turn waits for the absent seat
    table.select_card(ids[0], 0)
    table.select_card(ids[2], 0)
    assert table.game.turns_remaining == 9
    registry.create_or_join('B', table.id)
    table.select_card(ids[1], 0)
    assert table.game.turns_remaining == 8


def test_registry_discards_abandoned_games():
    registry = GameRegistry(dealer_factory=lambda: Dealer(seed=2))
    table, ids = seat(registry, ['A', 'B'])
    table.start(ids[0])
    table.disconnect(ids[0])
    assert not registry.discard_if_abandoned(table.id)
    table.disconnect(ids[1])
    assert registry.discard_if_abandoned(table.id)
    assert registry.list_games() == []
    with pytest.raises(NotFound):
        table.select_card(ids[0], 0)


def test_list_and_delete_games():
    registry = GameRegistry()
    table, _ = seat(registry, ['A', 'B'])
    other, _ = seat(registry, ['C'])
    listed = {g['id']: g for g in registry.list_games()}
    assert listed[table.id] == {'id': table.id, 'player_count': 2, 'phase': 'waiting', 'round': 0}
    assert other.id in listed

    registry.delete_game(table.id)
    assert [g['id'] for g in registry.list_games()] == [other.id]
    with pytest.raises(NotFound):
        registry.delete_game(table.id)
    with pytest.raises(NotFound):
        registry.create_or_join('D', table.id)


def test_concurrent_picks_resolve_exactly_once():
    registry = GameRegistry(dealer_factory=lambda: Dealer(seed=4))
    table, ids = seat(registry, ['A', 'B', 'C', 'D', 'E'])
    table.start(ids[0])
    barrier = threading.Barrier(len(ids))

    def pick(pid):
        barrier.wait()
        table.select_card(pid, 0)

    threads = [threading.Thread(target=pick, args=(pid,)) for pid in ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    game = table.game
    assert game.turns_remaining == 6
    assert all(len(p.collection) == 1 for p in game.players)
    assert all(len(p.hand) == 6 for p in game.players)


def test_two_player_game_matches_hand_count():
    # Each seat always picks index 0 from three-card hands, so seat 0 collects
    # A[0], B[1], A[2] and seat 1 collects B[0], A[1], B[2] every round.
    round_1 = [card('wasabi'), card('tempura'), nigiri('Salmon'),
               card('tempura'), card('tempura'), maki(3)]
    round_2 = [card('dumpling'), card('pudding'), card('dumpling'),
               card('sashimi'), card('dumpling'), maki(2)]
    round_3 = [card('pudding'), nigiri('Squid'), card('pudding'),
               maki(1), nigiri('Egg'), maki(1)]
    dealer = StackedDealer(round_1 + round_2 + round_3)
    registry = GameRegistry(TableRules(cards_per_hand=3), dealer_factory=lambda: dealer)
    table, ids = seat(registry, ['Ann', 'Ben'])
    table.start(ids[1])

    ends = []
    while table.game.phase != Phase.GAME_END:
        for pid in ids:
            ends.extend(m for m in table.select_card(pid, 0) if m.event in ('round_end', 'game_end'))

    ann, ben = table.game.players
    # r1: Ann wasabi+salmon 6; Ben tempura pair 5 + maki 6
    # r2: Ann three dumplings 6; Ben maki 6
    # r3: Ann egg 1; Ben squid 3 + maki 6
    assert ann.round_scores == [6, 6, 1]
    assert ben.round_scores == [11, 6, 9]
    # Ann has two puddings to Ben's one; no penalty with two players
    assert ann.pudding_points == 6
    assert ben.pudding_points == 0
    assert ann.total_score == 19
    assert ben.total_score == 26
    assert [m.event for m in ends] == ['round_end', 'round_end', 'round_end', 'game_end']
    result = ends[-1].payload
    assert result['winner'] == ids[1]
    assert [r['total_score'] for r in result['rankings']] == [26, 19]


@pytest.mark.parametrize('players', [2, 3, 4, 5])
def test_simulated_games_finish_consistently(players):
    result = simulate_game(players, rng=random.Random(players), dealer=Dealer(seed=players))
    assert len(result['rankings']) == players
    for entry in result['rankings']:
        assert len(entry['round_scores']) == 3
        assert entry['total_score'] == sum(entry['round_scores']) + entry['pudding_points']


def test_simultaneous_nameless_joins_get_separate_seats(monkeypatch):
    monkeypatch.setattr('sushigo.services.games.session.generate_player_name', lambda: 'Totoro')
    registry = GameRegistry()
    table = registry.create_game()
    barrier = threading.Barrier(4)
    seats = []

    def join():
        barrier.wait()
        seats.append(registry.create_or_join(None, table.id)[1])

    threads = [threading.Thread(target=join) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(set(seats)) == 4
    assert sorted(p.name for p in table.game.players) == ['Totoro', 'Totoro 2', 'Totoro 3', 'Totoro 4']
