import random
import secrets
from typing import Container

REGIONS = [
    'tokyo', 'kyoto', 'osaka', 'hokkaido', 'okinawa',
    'nara', 'hiroshima', 'fukuoka', 'nagoya', 'sapporo',
]

FLOWERS = [
    'sakura', 'ume', 'tsubaki', 'ajisai', 'kiku',
    'fuji', 'botan', 'ayame', 'momiji', 'hasu',
]

PLAYER_NAMES = [
    'Jiro Ono',
    'Naruto', 'Totoro', 'Goku', 'Pikachu', 'Luffy',
    'Yoshikage Kira', 'Jotaro Kujoh', 'Gon Freecs',
    'Miyamoto Musashi', 'Oda Nobunaga',
]


def generate_game_id(taken: Container[str] = ()) -> str:
    """Generate a unique, memorable game id like ``kyoto-sakura-42``."""
    while True:
        code = f"{random.choice(REGIONS)}-{random.choice(FLOWERS)}-{random.randint(10, 99)}"
        if code not in taken:
            return code


def generate_player_id() -> str:
    return secrets.token_hex(16)


def generate_player_name() -> str:
    return random.choice(PLAYER_NAMES)
