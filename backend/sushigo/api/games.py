from flask import Blueprint, current_app, jsonify, request

from sushigo import get_registry
from sushigo.services.games.errors import GameError, InvalidPhase, NotFound
from sushigo.services.games.wire import to_wire

games = Blueprint('games', __name__)

_STATUS = {
    NotFound: 404,
    InvalidPhase: 409,
}


def _json(payload, status=200):
    return jsonify(to_wire(payload, current_app.config.get('WIRE_CASE', 'snake'))), status


@games.errorhandler(GameError)
def handle_game_error(exc):
    status = _STATUS.get(type(exc), 400)
    return _json({'error': exc.message, 'code': exc.code}, status)


@games.route('', methods=['GET'])
def list_games():
    """Lists live games for the lobby."""
    return _json({'games': get_registry().list_games()})


@games.route('/<string:game_id>/state', methods=['GET'])
def get_game_state(game_id):
    """Returns the broadcast view, or a seat's private view when ``player_id`` names one."""
    player_id = request.args.get('player_id') or request.args.get('playerId')
    table = get_registry().get(game_id)
    return _json(table.view(player_id))


@games.route('/<string:game_id>', methods=['DELETE'])
def delete_game(game_id):
    """Deletes a game and tells everyone seated in it."""
    get_registry().delete_game(game_id)
    from sushigo.socketio_events import broadcast_games_list, end_session
    end_session(game_id)
    broadcast_games_list()
    current_app.logger.info(f"[delete] game={game_id} via http")
    return _json({'message': f'Game {game_id} deleted'})
