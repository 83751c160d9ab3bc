"""Key casing adapter for payloads crossing the socket/HTTP boundary.

The engine speaks snake_case only. Inbound keys are normalised here once,
and outbound keys are rewritten to the casing clients asked for.
"""
import re

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])([A-Z])')


def snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub(r'_\1', key).lower()


def camel_case(key: str) -> str:
    head, *rest = key.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def _rekey(value, convert):
    if isinstance(value, dict):
        return {convert(k) if isinstance(k, str) else k: _rekey(v, convert) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_rekey(v, convert) for v in value]
    return value


def from_wire(data) -> dict:
    if not isinstance(data, dict):
        return {}
    return _rekey(data, snake_case)


def to_wire(payload, case: str = 'snake'):
    if case == 'camel':
        return _rekey(payload, camel_case)
    return payload
