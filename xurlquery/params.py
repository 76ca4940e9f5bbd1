"""
Functions that work on a parameter tree, the nested `dict` that `xurlquery.url.URLQuery`
keeps its query parameters in.

A value in the tree is either a scalar (`str`, `int`, `float`, `bool`, `datetime.date`),
a nested `dict`, or a `list` of values.

## Dot-notation keys

Keys like `"user.name"` address nested values, one dict-level per segment:

>>> data = {}
>>> set_value(data, 'user.name', 'Bob')
>>> data
{'user': {'name': 'Bob'}}
>>> get_value(data, 'user.name')
'Bob'

## Bracket-nested query encoding

`encode_query` flattens the tree into query pairs the way PHP/Rack do it, and
`decode_query` reverses it:

>>> encode_query({'user': {'name': 'Bob'}, 'tags': ['a', 'b']})
[('user[name]', 'Bob'), ('tags[0]', 'a'), ('tags[1]', 'b')]
>>> decode_query('user[name]=Bob&tags[0]=a&tags[1]=b')
{'user': {'name': 'Bob'}, 'tags': ['a', 'b']}
"""
from __future__ import annotations
from typing import (
    Any,
    Dict,
    List,
    Tuple,
    Union,
    Sequence,
    Mapping,
    AbstractSet,
    Optional,
)
import datetime as dt
import re
from urllib import parse as urlparser

Parameters = Dict[str, Any]
""" A parameter tree; values are scalars, nested `Parameters` or lists of values. """

Key = Union[str, Sequence[str]]
""" Either a dot-notation `str` or the already-split key segments. """

_bracket_key_re = re.compile(r'^([^\[\]]+)((?:\[[^\[\]]*\])+)$')
_bracket_segment_re = re.compile(r'\[([^\[\]]*)\]')


def split_key(key: Key) -> List[str]:
    if isinstance(key, str):
        return key.split('.')
    return list(key)


def is_empty(value: Any) -> bool:
    """ `''` and `None` are empty; `0` and `False` are not. """
    return value is None or (isinstance(value, str) and value == '')


def get_value(data: Mapping, key: Key, default: Any = None) -> Any:
    """
    Walks `data` one segment at a time, returning `default` the moment a segment is
    missing or the value we are walking through is not a mapping.
    """
    current = data
    for segment in split_key(key):
        if not isinstance(current, Mapping) or segment not in current:
            return default
        current = current[segment]
    return current


def has_value(data: Mapping, key: Key) -> bool:
    missing = object()
    return get_value(data, key, missing) is not missing


def set_value(data: dict, key: Key, value: Any):
    """
    Creates (or overwrites with an empty `dict`) any intermediate value that is not
    a mapping, then assigns `value` to the last segment.
    """
    *parents, last = split_key(key)
    current = data
    for segment in parents:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child
    current[last] = value


def delete_value(data: dict, key: Key):
    """ Removes the addressed leaf/subtree, nothing happens if it does not exist. """
    *parents, last = split_key(key)
    current = data
    for segment in parents:
        current = current.get(segment)
        if not isinstance(current, dict):
            return
    current.pop(last, None)


def prune(data: Any, numeric_keys: AbstractSet[str] = frozenset()) -> Any:
    """
    Returns a copy of `data` without its empty values, recursively.

    - Lists drop `''` and `None` items (but keep `0`, `False` and empty containers).
    - Dicts drop keys whose value is `''`, `None` or an empty list.
      Empty dicts are kept.
    - Keys in `numeric_keys` only drop `''` and `None`; so `0`/`'0'` and empty lists
      survive under them.

    Scalars come back unchanged. Running it twice gives the same result as running it once.
    """
    if isinstance(data, (list, tuple)):
        items = (prune(item, numeric_keys) for item in data)
        return [item for item in items if not is_empty(item)]

    if isinstance(data, Mapping):
        result = {}
        for key, value in data.items():
            value = prune(value, numeric_keys)
            if is_empty(value):
                continue
            if key not in numeric_keys and isinstance(value, list) and not value:
                continue
            result[key] = value
        return result

    return data


def format_value(value: Any) -> str:
    """ Formats a scalar for the query string. """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, dt.date):
        return value.isoformat()
    return str(value)


def encode_query(data: Any, prefix: str = '') -> List[Tuple[str, str]]:
    """
    Flattens `data` into `(key, value)` pairs with bracket-nested keys,
    ie: `{'a': {'b': 'c'}}` -> `[('a[b]', 'c')]` and `{'a': ['x']}` -> `[('a[0]', 'x')]`.

    Empty dicts/lists produce nothing, and `None` values are skipped.
    """
    pairs = []
    if isinstance(data, Mapping):
        for key, value in data.items():
            path = f'{prefix}[{key}]' if prefix else str(key)
            pairs.extend(encode_query(value, path))
    elif isinstance(data, (list, tuple)):
        for index, value in enumerate(data):
            pairs.extend(encode_query(value, f'{prefix}[{index}]'))
    elif data is not None:
        pairs.append((prefix, format_value(data)))
    return pairs


def parse_query_key(name: str) -> List[str]:
    """
    Splits a query key-name into key segments.

    >>> parse_query_key('filters[price][min]')
    ['filters', 'price', 'min']
    >>> parse_query_key('user.name')
    ['user', 'name']

    An empty segment (`tags[]`) means 'append', see `decode_query`.
    Names that are not well-formed bracket names (ie: `a[b`) are only split on dots.
    """
    match = _bracket_key_re.match(name)
    if not match:
        return name.split('.')
    base, brackets = match.groups()
    return base.split('.') + _bracket_segment_re.findall(brackets)


def decode_query(query_string: Optional[str]) -> Parameters:
    """
    Parses a query string into a parameter tree.

    Blank values are kept (pruning is up to the caller), and if a key appears more than
    once the last one wins, unless it's an append key (`tags[]`).
    Any nested dict whose keys are exactly `'0'` to `'n-1'` becomes a list.
    """
    data: Parameters = {}
    for name, value in urlparser.parse_qsl(query_string or '', keep_blank_values=True):
        set_value(data, _resolve_appends(data, parse_query_key(name)), value)
    return {key: _listify(value) for key, value in data.items()}


def _resolve_appends(data: Parameters, segments: List[str]) -> List[str]:
    """ Replaces empty (append) segments with the next index at that level of `data`. """
    resolved = []
    current = data
    for segment in segments:
        if not segment and resolved:
            segment = str(len(current)) if isinstance(current, dict) else '0'
        resolved.append(segment)
        current = current.get(segment) if isinstance(current, dict) else None
    return resolved


def _listify(value: Any) -> Any:
    if not isinstance(value, dict):
        return value

    value = {key: _listify(item) for key, item in value.items()}
    if value and all(key == str(index) for index, key in enumerate(value)):
        return list(value.values())
    return value
