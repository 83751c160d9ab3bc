import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Table size limits enforced on start
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '5'))
    NUM_ROUNDS = int(os.environ.get('NUM_ROUNDS', '3'))
    # 0 deals by player count (2p: 10, 3p: 9, 4p: 8, 5p: 7)
    CARDS_PER_HAND = int(os.environ.get('CARDS_PER_HAND', '0'))
    # Optional: fixed shuffle seed for reproducible games. Empty means random.
    DECK_SEED = os.environ.get('DECK_SEED') or None
    # Key casing of outbound payloads: 'snake' or 'camel'
    WIRE_CASE = os.environ.get('WIRE_CASE', 'snake')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',') if o.strip()
    ]
