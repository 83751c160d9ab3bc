import logging
import random

import click
from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

socketio = SocketIO(async_mode=None)


def get_registry():
    """The game registry bound to the running app."""
    return current_app.extensions['sushigo_registry']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    logging.getLogger(__name__).setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from sushigo.services.games.deck import Dealer
    from sushigo.services.games.registry import GameRegistry
    from sushigo.services.games.rounds import TableRules

    seed = flask_app.config.get('DECK_SEED')
    flask_app.extensions['sushigo_registry'] = GameRegistry(
        TableRules.from_config(flask_app.config),
        dealer_factory=lambda: Dealer(seed),
    )

    from sushigo.main import main
    flask_app.register_blueprint(main)

    from sushigo.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from sushigo.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('simulate-game')
    @click.option('--players', default=3, show_default=True, help='Number of seats (2-5).')
    @click.option('--seed', default=None, type=int, help='Seed for the deck and the picks.')
    def simulate_game_command(players, seed):
        """Plays a full game with random legal picks and prints the standings."""
        from sushigo.services.games.errors import GameError
        from sushigo.services.games.simulate import simulate_game
        rules = TableRules.from_config(flask_app.config)
        try:
            result = simulate_game(players, rules=rules, rng=random.Random(seed), dealer=Dealer(seed))
        except GameError as exc:
            raise click.BadParameter(exc.message, param_hint='--players')
        for entry in result['rankings']:
            click.echo(
                f"{entry['rank']}. {entry['name']:<20} {entry['total_score']:>4} pts "
                f"(rounds {entry['round_scores']}, pudding {entry['pudding_points']:+d})"
            )

    flask_app.cli.add_command(simulate_game_command)

    return flask_app
