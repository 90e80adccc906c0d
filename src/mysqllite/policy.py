"""
Automatic responses for statements that touch no rows.
"""
import logging
from dataclasses import dataclass

from mysqllite import responses
from mysqllite.responses import Response

logger = logging.getLogger(__name__)

__all__ = ['NoRowsRule', 'NoRowsPolicy', 'PRIORITY', 'DEFAULT_MESSAGES']

# Evaluation order when several codes are enabled at once
PRIORITY: tuple[int, ...] = (204, 401, 403, 409)

DEFAULT_MESSAGES: dict[int, str] = {
    204: '',
    401: 'Unauthorized Access',
    403: 'You do not have permission to complete this action',
    409: 'The server was unable to handle this request to an existing record causing a conflict',
}


@dataclass(slots=True)
class NoRowsRule:
    code: int
    enabled: bool = False
    one_shot: bool = False
    message: str = ''


class NoRowsPolicy:
    """Rule table mapping a status code to the response sent on zero rows.

    Codes are independent and several may be enabled together; only the
    first enabled code in `PRIORITY` order is signalled. One-shot rules
    are disabled by `reset_one_shot`, which runs once per execution
    whether or not the rule fired.
    """

    def __init__(self) -> None:
        self.rules: dict[int, NoRowsRule] = {
            code: NoRowsRule(code, message=DEFAULT_MESSAGES[code]) for code in PRIORITY
        }

    def set(self, code: int, enabled: bool = True, one_shot: bool = False,
            message: str = '') -> 'NoRowsPolicy':
        """Configure the rule for `code`. An empty message keeps the current one.
        """
        if code not in self.rules:
            raise ValueError(f'Unsupported no-rows response code: {code}. '
                             f'Must be one of: {list(PRIORITY)}')
        rule = self.rules[code]
        rule.enabled = enabled
        rule.one_shot = one_shot
        if message:
            rule.message = message
        return self

    def is_enabled(self, code: int) -> bool:
        rule = self.rules.get(code)
        return rule is not None and rule.enabled

    def signal(self, code: int) -> Response:
        """Build the response for `code` with its configured message."""
        message = self.rules[code].message
        if code == 204:
            return responses.no_content()
        if code == 401:
            return responses.unauthorized(message)
        if code == 403:
            return responses.access_error(message)
        return responses.conflict(message)

    def evaluate(self, row_count: int) -> Response | None:
        """Return the response to send for `row_count`, if any."""
        if row_count != 0:
            return None
        for code in PRIORITY:
            if self.rules[code].enabled:
                logger.debug(f'No rows affected, signalling {code}')
                return self.signal(code)
        return None

    def reset_one_shot(self) -> None:
        for rule in self.rules.values():
            if rule.one_shot:
                rule.enabled = False
                rule.one_shot = False
