'''Serialization of Ballotbox records to JSON-ready dictionaries.

Elections, ballots and tally results are decorated with
:func:`simple_serialization`. The decorator registers the class and gives it
a ``to_dict()`` method dumping the attributes named by its constructor
parameters. :func:`from_dict` rebuilds the records; only registered classes
can be rebuilt, so a stored document cannot name arbitrary code.

Besides plain JSON types, records carry a few values JSON has no type for:
timezone-aware datetimes, tuples (option lists and rankings), frozensets
(approvals) and fractions (thresholds). These are written as
``{'type': <tag>, 'value': <json>}`` dictionaries.
'''

import inspect
import datetime
import importlib
from fractions import Fraction
from typing import Any, Dict, Callable, Tuple


PACKAGE = 'ballotbox'

SERIALIZABLE: Dict[str, type] = {}


def simple_serialization(class_: type) -> type:
    '''Register a record class and add a to_dict() method to it.

    The class must keep every constructor parameter as an attribute of the
    same name, in a form its constructor accepts back.

    :param class_: The class to decorate.
    '''
    param_names = [
        name for name in inspect.signature(class_.__init__).parameters
        if name != 'self'
    ]
    path = class_path(class_)

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {'class': path}
        for name in param_names:
            out_dict[name] = serialize_value(getattr(self, name))
        return out_dict

    class_.to_dict = to_dict
    SERIALIZABLE[path] = class_
    return class_


def to_dict(obj: Any) -> Dict[str, Any]:
    '''Serialize a record to a JSON-ready dictionary.

    :param obj: An election, ballot or tally result.
    '''
    if not hasattr(obj, 'to_dict'):
        raise ValueError(f'{obj!r} is not a serializable record')
    return obj.to_dict()


def from_dict(value: Dict[str, Any]) -> Any:
    '''Rebuild a record from a dictionary created by :func:`to_dict`.

    :raises ValueError: If the dictionary does not describe a record of a
        registered class.
    '''
    if not isinstance(value, dict):
        raise ValueError(f'invalid record: dict expected, got {value!r}')
    if not isinstance(value.get('class'), str):
        raise ValueError(f'invalid record, no class given: {value!r}')
    return deserialize_value(value)


def serialize_value(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif value is None or isinstance(value, (str, bool, int, float)):
        return value
    elif type(value) in TAGS:
        tag = TAGS[type(value)]
        return {'type': tag, 'value': CODECS[tag][0](value)}
    elif isinstance(value, dict):
        for key in value:
            if not isinstance(key, str):
                raise ValueError(f'cannot serialize non-string key {key!r}')
        return {key: serialize_value(val) for key, val in value.items()}
    elif isinstance(value, list):
        return [serialize_value(item) for item in value]
    else:
        raise ValueError(f'cannot serialize {value!r}')


def deserialize_value(value: Any) -> Any:
    if isinstance(value, list):
        return [deserialize_value(item) for item in value]
    elif isinstance(value, dict):
        if isinstance(value.get('class'), str):
            return deserialize_record(value)
        elif value.keys() == {'type', 'value'} and value['type'] in CODECS:
            return CODECS[value['type']][1](value['value'])
        else:
            return {key: deserialize_value(val) for key, val in value.items()}
    elif value is None or isinstance(value, (str, bool, int, float)):
        return value
    else:
        raise ValueError(f'cannot deserialize {value!r}')


def deserialize_record(record: Dict[str, Any]) -> Any:
    params = dict(record)
    cls = get_class(params.pop('class'))
    return cls(**{
        name: deserialize_value(val) for name, val in params.items()
    })


def get_class(path: str) -> type:
    '''Return the registered record class with the given dotted path.

    Modules of the package are imported on demand so that records can be
    loaded before the module defining them was used.
    '''
    if path not in SERIALIZABLE:
        module = path.rpartition('.')[0]
        if module.split('.')[0] != PACKAGE:
            raise ValueError(f'refusing to load {path}')
        try:
            importlib.import_module(module)
        except ImportError:
            raise ValueError(f'no module for {path}') from None
    try:
        return SERIALIZABLE[path]
    except KeyError:
        raise ValueError(f'{path} is not a record class') from None


def class_path(cls: type) -> str:
    return f'{cls.__module__}.{cls.__qualname__}'


def _tuple_from_json(items: list) -> tuple:
    return tuple(deserialize_value(item) for item in items)


def _frozenset_to_json(items: frozenset) -> list:
    # sorted for a stable dump order
    return [serialize_value(item) for item in sorted(items, key=str)]


def _frozenset_from_json(items: list) -> frozenset:
    return frozenset(deserialize_value(item) for item in items)


def _fraction_from_json(pair: list) -> Fraction:
    numerator, denominator = pair
    return Fraction(numerator, denominator)


TAGS: Dict[type, str] = {
    datetime.datetime: 'datetime',
    tuple: 'tuple',
    frozenset: 'frozenset',
    Fraction: 'fraction',
}

CODECS: Dict[str, Tuple[Callable, Callable]] = {
    'datetime': (
        datetime.datetime.isoformat, datetime.datetime.fromisoformat
    ),
    'tuple': (
        lambda items: [serialize_value(item) for item in items],
        _tuple_from_json,
    ),
    'frozenset': (_frozenset_to_json, _frozenset_from_json),
    'fraction': (
        lambda value: [value.numerator, value.denominator],
        _fraction_from_json,
    ),
}
