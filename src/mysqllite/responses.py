"""
HTTP responses a statement run can end with.

Nothing here writes to a client. A `Response` describes the status code
and JSON body; the hosting web framework sends it and finishes the
request. Code paths that cannot hand a value back (parameter setters)
raise `ResponseSignal` instead.
"""
import json
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    'Response',
    'ResponseSignal',
    'success',
    'no_content',
    'server_error',
    'client_error',
    'unauthorized',
    'access_error',
    'conflict',
    'general',
]


@dataclass(frozen=True)
class Response:
    """Status code plus ``{message, data}`` body."""
    status_code: int
    message: str = 'OK'
    data: Any = field(default_factory=list)

    @property
    def body(self) -> dict[str, Any] | None:
        """JSON body, or None for 204 No Content."""
        if self.status_code == 204:
            return None
        return {'message': self.message, 'data': self.data}

    def to_json(self) -> str:
        body = self.body
        if body is None:
            return ''
        return json.dumps(body, default=str)


class ResponseSignal(Exception):
    """Raised to end the current request with a response.
    """

    def __init__(self, response: Response) -> None:
        super().__init__(f'{response.status_code} {response.message}')
        self.response = response


def general(status_code: int, message: str = 'OK', data: Any = None) -> Response:
    """Response for any status code."""
    return Response(status_code, message, [] if data is None else data)


def success(data: Any = None, message: str = 'OK') -> Response:
    return general(200, message, data)


def no_content() -> Response:
    return general(204)


def server_error(message: str = 'Server Error') -> Response:
    return general(500, message)


def client_error(message: str = 'Client Error') -> Response:
    return general(400, message)


def unauthorized(message: str = 'Unauthorized') -> Response:
    return general(401, message)


def access_error(message: str = 'You do not have access to perform this operation') -> Response:
    return general(403, message)


def conflict(message: str = 'An existing record is conflicting with this.',
             data: Any = None) -> Response:
    return general(409, message, data)
