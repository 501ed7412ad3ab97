""" Query Object from URL parameters

Every key of the Query Object comes in its own URL parameter, serialized:

    /api/orders/?filter={ state: paid }&sort=[total_amount-]&annotate=[n_items]

With PyYAML installed, parameters are YAML: quotes are optional. Otherwise, they are JSON.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import fastapi

from eagerpage import QueryObject
from eagerpage import exc

try:
    import yaml
except ImportError:
    yaml = None


def query_object(*,
                 filter: Optional[str] = fastapi.Query(
                     None,
                     title='Filter criteria',
                     description='MongoDB-like conditions on fields and annotations. '
                                 'Example: `{ state: paid, total_amount: { $gt: 100 } }`',
                 ),
                 sort: Optional[str] = fastapi.Query(
                     None,
                     title='Sorting order',
                     description='Fields and annotations, with an optional `+` or `-` suffix. '
                                 'Example: `[ total_amount-, id ]`',
                 ),
                 annotate: Optional[str] = fastapi.Query(
                     None,
                     title='Annotations to compute',
                     description='Example: `[ total_amount, n_items ]`',
                 ),
                 ) -> Optional[QueryObject]:
    """ FastAPI dependency: the Query Object, or None when no parameters are given

    Raises:
        exc.QueryObjectError: malformed parameters
    """
    arguments = {'filter': filter, 'sort': sort, 'annotate': annotate}
    if not any(arguments.values()):
        return None

    try:
        decoded = {
            name: decode_argument(name, value)
            for name, value in arguments.items()
            if value is not None
        }
    except ArgumentValueError as e:
        raise exc.QueryObjectError(f'Cannot parse the "{e.argument_name}" parameter: {e}') from e

    return QueryObject.from_query_object(decoded)  # type: ignore[arg-type]


class ArgumentValueError(ValueError):
    """ A URL parameter could not be decoded """

    def __init__(self, argument_name: str, error: str):
        super().__init__(error)
        self.argument_name = argument_name


def decode_argument(name: str, value: str) -> Any:
    """ Decode one serialized parameter: YAML if available, JSON otherwise """
    if yaml is not None:
        try:
            return yaml.safe_load(value)
        except yaml.YAMLError as e:
            raise ArgumentValueError(name, str(e)) from e

    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ArgumentValueError(name, f'malformed JSON: {e}') from e
