from flask import current_app, request
from flask_socketio import close_room, emit, join_room, leave_room
from typing import Any, Dict, Iterable, Optional

from sushigo import get_registry, socketio
from sushigo.services.games.errors import GameError, NotFound
from sushigo.services.games.session import Outbound
from sushigo.services.games.wire import from_wire, to_wire

NAMESPACE = '/ws'

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_player_sid: Dict[str, str] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room(game_id: str) -> str:
    return f"game:{game_id}"


def _wire(payload: dict) -> dict:
    return to_wire(payload, current_app.config.get('WIRE_CASE', 'snake'))


def _namespace() -> str:
    return getattr(request, 'namespace', None) or NAMESPACE


def _reject(exc: GameError) -> None:
    current_app.logger.info(f"[reject] sid={_get_sid()} code={exc.code} message={exc.message}")
    emit('error', _wire(exc.to_dict()))


def dispatch(game_id: str, messages: Iterable[Outbound], namespace: Optional[str] = None) -> None:
    """Push engine messages: private ones to a seat's socket, the rest to the game room."""
    namespace = namespace or NAMESPACE
    for msg in messages:
        payload = _wire(msg.payload)
        if msg.player_id is None:
            socketio.emit(msg.event, payload, to=_room(game_id), namespace=namespace)
            continue
        sid = _player_sid.get(msg.player_id)
        if sid:
            socketio.emit(msg.event, payload, to=sid, namespace=namespace)


def broadcast_games_list(namespace: Optional[str] = None) -> None:
    socketio.emit('games_list', _wire({'games': get_registry().list_games()}), namespace=namespace or NAMESPACE)


def _forget_sid(sid: str) -> Optional[Dict[str, Any]]:
    ctx = _sid_to_ctx.pop(sid, None)
    if ctx and _player_sid.get(ctx['player_id']) == sid:
        _player_sid.pop(ctx['player_id'], None)
    return ctx


def _require_ctx(data: dict) -> Dict[str, Any]:
    ctx = _sid_to_ctx.get(_get_sid())
    if not ctx:
        raise NotFound('Join a game first')
    game_id = data.get('game_id')
    if game_id and game_id != ctx['game_id']:
        raise NotFound(f"You are not seated in game {game_id}")
    return ctx


def end_session(game_id: str, namespace: Optional[str] = None) -> None:
    """Notify a deleted game's sockets and drop their seat bindings."""
    namespace = namespace or NAMESPACE
    socketio.emit('game_deleted', _wire({'game_id': game_id, 'message': 'This game has been deleted'}),
                  to=_room(game_id), namespace=namespace)
    for sid, ctx in list(_sid_to_ctx.items()):
        if ctx.get('game_id') == game_id:
            _forget_sid(sid)
    close_room(_room(game_id), namespace=namespace)


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _discard_if_abandoned(game_id: str, namespace: str) -> None:
    if get_registry().discard_if_abandoned(game_id):
        current_app.logger.info(f"[abandoned] game={game_id} all players gone, deleting")
        broadcast_games_list(namespace)


def _release_seat(ctx: Dict[str, Any], namespace: str) -> None:
    """Apply the connection-loss policy to a seat its socket has left."""
    game_id = ctx['game_id']
    try:
        table = get_registry().get(game_id)
    except NotFound:
        return
    dispatch(game_id, table.disconnect(ctx['player_id']), namespace)
    _discard_if_abandoned(game_id, namespace)


def handle_disconnect(*args):
    ctx = _forget_sid(_get_sid())
    if ctx:
        _release_seat(ctx, _namespace())


def handle_join_game(data=None):
    data = from_wire(data)
    sid = _get_sid()
    registry = get_registry()
    try:
        table, player_id, reconnected, messages = registry.create_or_join(
            data.get('player_name') or data.get('name'),
            data.get('game_id') or None,
            data.get('player_id') or None,
        )
    except GameError as exc:
        _reject(exc)
        return

    # A socket sits at one seat at a time
    previous = _sid_to_ctx.get(sid)
    if previous and previous['player_id'] != player_id:
        leave_room(_room(previous['game_id']))
        _forget_sid(sid)
    else:
        previous = None
    # A returning player replaces their stale socket
    stale = _player_sid.get(player_id)
    if stale and stale != sid:
        _sid_to_ctx.pop(stale, None)
        leave_room(_room(table.id), sid=stale, namespace=_namespace())

    join_room(_room(table.id))
    _sid_to_ctx[sid] = {'game_id': table.id, 'player_id': player_id}
    _player_sid[player_id] = sid
    current_app.logger.info(f"[join] sid={sid} game={table.id} player={player_id} reconnected={reconnected}")

    emit('joined', _wire({'game_id': table.id, 'player_id': player_id, 'reconnected': reconnected}))
    dispatch(table.id, messages, _namespace())
    if not data.get('game_id'):
        broadcast_games_list(_namespace())
    # The seat this socket held before is treated as disconnected
    if previous:
        _release_seat(previous, _namespace())


def handle_start_game(data=None):
    data = from_wire(data)
    try:
        ctx = _require_ctx(data)
        messages = get_registry().get(ctx['game_id']).start(ctx['player_id'])
    except GameError as exc:
        _reject(exc)
        return
    dispatch(ctx['game_id'], messages, _namespace())


def handle_select_card(data=None):
    data = from_wire(data)
    try:
        ctx = _require_ctx(data)
        table = get_registry().get(ctx['game_id'])
        messages = table.select_card(
            ctx['player_id'],
            data.get('card_index'),
            data.get('use_chopsticks') is True,
            data.get('second_card_index'),
        )
    except GameError as exc:
        _reject(exc)
        return
    dispatch(ctx['game_id'], messages, _namespace())


def handle_withdraw_card(data=None):
    data = from_wire(data)
    try:
        ctx = _require_ctx(data)
        messages = get_registry().get(ctx['game_id']).withdraw_card(ctx['player_id'])
    except GameError as exc:
        _reject(exc)
        return
    dispatch(ctx['game_id'], messages, _namespace())


def handle_kick_player(data=None):
    data = from_wire(data)
    try:
        ctx = _require_ctx(data)
        target = data.get('player_id')
        if not target:
            raise NotFound('player_id is required')
        messages = get_registry().get(ctx['game_id']).remove_player(target, requester_id=ctx['player_id'])
    except GameError as exc:
        _reject(exc)
        return
    # Deliver the kick notice before unbinding the socket
    dispatch(ctx['game_id'], messages, _namespace())
    kicked_sid = _player_sid.get(target)
    if kicked_sid:
        _forget_sid(kicked_sid)
        leave_room(_room(ctx['game_id']), sid=kicked_sid, namespace=_namespace())
    _discard_if_abandoned(ctx['game_id'], _namespace())


def handle_list_games(data=None):
    emit('games_list', _wire({'games': get_registry().list_games()}))


def handle_delete_game(data=None):
    data = from_wire(data)
    game_id = data.get('game_id')
    try:
        if not game_id:
            raise NotFound('game_id is required')
        get_registry().delete_game(game_id)
    except GameError as exc:
        _reject(exc)
        return
    current_app.logger.info(f"[delete] game={game_id} by sid={_get_sid()}")
    end_session(game_id, _namespace())
    broadcast_games_list(_namespace())


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_game': handle_join_game,
        'start_game': handle_start_game,
        'select_card': handle_select_card,
        'withdraw_card': handle_withdraw_card,
        'kick_player': handle_kick_player,
        'list_games': handle_list_games,
        'delete_game': handle_delete_game,
        'ping': handle_ping,
    }
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
