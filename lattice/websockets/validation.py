"""Lightweight websocket payload validation utilities.

Minimal schema-like checking with clear, consistent error responses; not a
general JSON Schema implementation. Returns (ok, value_or_error) tuples and
the caller decides whether to emit an error event.

Schema Mini-Language (Python dict):
{
  'field_name': ('type', required: bool, extras: dict)
}
Supported types: 'str', 'int', 'list', 'dict'
Extras examples:
  max_len (for str), min_len (str), allow_empty (str)
  item_type (list element primitive type)

Example:
 ok, data_or_err = validate({'username': 'alice', 'action': 'look'}, GAME_ACTION)

If invalid: (False, {'field': 'action', 'error': 'too long', 'code': 'max_len'})
If valid: (True, normalized_data)
"""
from __future__ import annotations
from typing import Any, Dict, Tuple

PRIMITIVES = {
    'str': str,
    'int': int,
    'list': list,
    'dict': dict,
}


def _fail(field: str, message: str, code: str) -> Tuple[bool, Dict[str, Any]]:
    return False, {'field': field, 'error': message, 'code': code}


def validate(payload: Any, schema: Dict[str, tuple]) -> Tuple[bool, Dict[str, Any]]:
    if not isinstance(payload, dict):
        return _fail('__root__', 'payload must be an object', 'type')
    out = {}
    for name, spec in schema.items():
        if not isinstance(spec, tuple) or len(spec) < 2:
            return _fail('__schema__', f'invalid spec for {name}', 'schema')
        type_name, required = spec[0], spec[1]
        extras = spec[2] if len(spec) > 2 else {}
        if type_name not in PRIMITIVES:
            return _fail('__schema__', f'unsupported type {type_name}', 'schema')
        if name not in payload or payload[name] is None:
            if required:
                return _fail(name, 'missing required field', 'required')
            continue
        value = payload[name]
        py_type = PRIMITIVES[type_name]
        # bool is an int subclass; agents sending true/false for ids are rejected
        if not isinstance(value, py_type) or (type_name == 'int' and isinstance(value, bool)):
            return _fail(name, f'expected {type_name}', 'type')
        if type_name == 'str':
            s = value.strip() if not extras.get('allow_empty') else value
            if not extras.get('allow_empty') and len(s) == 0:
                return _fail(name, 'must not be empty', 'empty')
            if 'max_len' in extras and len(value) > extras['max_len']:
                return _fail(name, 'too long', 'max_len')
            if 'min_len' in extras and len(s) < extras['min_len']:
                return _fail(name, 'too short', 'min_len')
            out[name] = s
        elif type_name == 'list':
            item_type = extras.get('item_type')
            if item_type:
                it = PRIMITIVES.get(item_type)
                if not it:
                    return _fail('__schema__', f'unsupported item_type {item_type}', 'schema')
                for idx, elem in enumerate(value):
                    if not isinstance(elem, it):
                        return _fail(name, f'element {idx} not {item_type}', 'item_type')
            out[name] = value
        else:
            out[name] = value
    return True, out

# Predefined schemas used by handlers
GAME_START = {
    'username': ('str', True, {'min_len': 1, 'max_len': 80}),
    'agentId': ('str', False, {'max_len': 80}),
}
GAME_ACTION = {
    'username': ('str', True, {'min_len': 1, 'max_len': 80}),
    'action': ('str', True, {'min_len': 1, 'max_len': 64}),
    'target': ('str', False, {'allow_empty': True, 'max_len': 200}),
}
WATCH_GAME = {
    'username': ('str', True, {'min_len': 1, 'max_len': 80}),
}
UNWATCH_GAME = WATCH_GAME
