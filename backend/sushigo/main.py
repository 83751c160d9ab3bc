from flask import Blueprint, jsonify

from sushigo import get_registry

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Sushi Go game server!'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'games': len(get_registry())})
