"""
Statement execution with automatic responses and typed results.

A `StatementRunner` executes prepared statements on one connection and
shapes the outcome for a JSON API:

- numeric columns come back as int/float (see `mysqllite.caster`)
- a statement that touches no rows can end the request with 204, 401,
  403 or 409 (see `mysqllite.policy`)
- an integrity constraint violation is handled like a statement that
  touched no rows when 409 is enabled (so 409 unless a higher-priority
  code is also enabled)
- any other failure ends the request with a generic 500

Responses are returned on the `ExecutionOutcome`; the hosting framework
sends them. `ExecutionOutcome.raise_for_response()` turns one into a
`ResponseSignal` for frameworks that end requests with an exception.

Examples
    runner = StatementRunner(cn)
    outcome = (runner
               .automatic_403()
               .set_single_row_return()
               .set_param('id', user_id)
               .prepare_sql('SELECT id, name FROM users WHERE id = :id')
               .execute())
    if outcome.response is not None:
        return outcome.response
"""
import logging
import traceback
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Self

import pandas as pd

from mysqllite import responses
from mysqllite.caster import cast_values
from mysqllite.exceptions import ValidationError, is_integrity_violation
from mysqllite.loaders import pandas_numpy_data_loader
from mysqllite.policy import DEFAULT_MESSAGES, NoRowsPolicy
from mysqllite.responses import Response, ResponseSignal
from mysqllite.sql import normalize_value
from mysqllite.statement import Statement
from mysqllite.types import ColumnMeta

logger = logging.getLogger(__name__)

__all__ = ['StatementRunner', 'ExecutionOutcome', 'UNSET', 'SESSION_ERROR_MESSAGE']

UNSET: Any = object()

SESSION_ERROR_MESSAGE = ('There is something wrong with the current session. '
                         'Try refreshing the page or logging in again')


@dataclass
class ExecutionOutcome:
    """Result of one `StatementRunner.execute` call."""
    was_success: bool = False
    row_count: int = 0
    data: list[dict[str, Any]] | dict[str, Any] = field(default_factory=list)
    failure_cause: BaseException | None = None
    response: Response | None = None

    @property
    def short_circuited(self) -> bool:
        """True when the request should end with `response`."""
        return self.response is not None

    def raise_for_response(self) -> None:
        if self.response is not None:
            raise ResponseSignal(self.response)


class StatementRunner:
    """Executes prepared statements and captures typed results.

    Configuration methods return the runner so calls can be chained.
    """

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.policy = NoRowsPolicy()
        self.statement: Statement | None = None
        self.params: dict[str, Any] = {}
        self.columns: list[ColumnMeta] = []
        self.outcome = ExecutionOutcome()
        self._single_row = False
        self._single_row_one_shot = False
        self._suppress_data = False
        self._suppress_data_one_shot = False

    # Automatic responses

    def enable_auto_response(self, code: int, message: str | None = None,
                             one_shot: bool = False, enabled: bool = True) -> Self:
        """Send `code` automatically when a statement touches zero rows."""
        self.policy.set(code, enabled=enabled, one_shot=one_shot, message=message or '')
        return self

    def automatic_204(self, enabled: bool = True, one_shot: bool = False) -> Self:
        return self.enable_auto_response(204, one_shot=one_shot, enabled=enabled)

    def automatic_401(self, enabled: bool = True, message: str = DEFAULT_MESSAGES[401],
                      one_shot: bool = False) -> Self:
        return self.enable_auto_response(401, message, one_shot=one_shot, enabled=enabled)

    def automatic_403(self, message: str = DEFAULT_MESSAGES[403], enabled: bool = True,
                      one_shot: bool = False) -> Self:
        return self.enable_auto_response(403, message, one_shot=one_shot, enabled=enabled)

    def automatic_409(self, message: str = DEFAULT_MESSAGES[409], enabled: bool = True,
                      one_shot: bool = False) -> Self:
        return self.enable_auto_response(409, message, one_shot=one_shot, enabled=enabled)

    # Result shaping

    def set_single_row_return(self, enabled: bool = True, one_shot: bool = False) -> Self:
        """Collapse a non-empty result to its first row."""
        self._single_row = enabled
        self._single_row_one_shot = one_shot
        return self

    def set_suppress_data_capture(self, enabled: bool = True, one_shot: bool = False) -> Self:
        """Skip fetching and casting the result set."""
        self._suppress_data = enabled
        self._suppress_data_one_shot = one_shot
        return self

    # Parameters

    def set_param(self, name: str, value: Any, upper_case: bool = False,
                  with_wildcards: bool = False) -> Self:
        """Bind `value` to the ``:name`` placeholder.

        Strings are trimmed, optionally upper-cased, and optionally wrapped
        in % wildcards for LIKE matching.
        """
        self.params[name] = normalize_value(value, upper_case, with_wildcards)
        return self

    def set_param_if(self, condition: bool, name: str, value: Any,
                     upper_case: bool = False, otherwise: Any = UNSET) -> Self:
        """Bind `value` only when `condition` holds, else `otherwise` if given."""
        if condition:
            return self.set_param(name, value, upper_case)
        if otherwise is not UNSET:
            self.params[name] = otherwise
        return self

    def set_param_from_post(self, name: str, post: Mapping[str, Any], key: str,
                            default: Any = UNSET, with_wildcards: bool = False,
                            upper_case: bool = False) -> Self:
        """Bind a value from the request body mapping. Missing keys bind `default` or None."""
        value = post.get(key)
        if value is None and default is not UNSET:
            value = default
        return self.set_param(name, value, upper_case, with_wildcards)

    def set_param_from_session(self, name: str, session: Mapping[str, Any], key: str,
                               default: Any = UNSET) -> Self:
        """Bind a value from the session mapping.

        Raises ResponseSignal (400) when the key is missing and no default is given.
        """
        if key in session and session[key] is not None:
            self.params[name] = session[key]
        elif default is not UNSET:
            self.params[name] = default
        else:
            logger.warning(f'Session value {key!r} is missing')
            raise ResponseSignal(responses.client_error(SESSION_ERROR_MESSAGE))
        return self

    # Statements

    def prepare_sql(self, sql: str) -> Self:
        self.statement = self.connection.prepare(sql)
        return self

    def bind_value(self, name: str, value: Any) -> Self:
        """Bind directly on the prepared statement, bypassing normalisation."""
        if self.statement is None:
            raise ValidationError('No statement has been prepared')
        self.statement.bind_value(name, value)
        return self

    def execute(self, statement: Statement | None = None) -> ExecutionOutcome:
        """Execute `statement` (default: the prepared one) with the bound params.

        Returns the outcome. When `outcome.response` is set the request
        should end with that response and `data` was not captured.
        """
        statement = statement if statement is not None else self.statement
        if statement is None:
            raise ValidationError('No statement has been prepared')

        # one-shot flags apply to this execution, then reset
        single_row = self._single_row
        suppress_data = self._suppress_data

        self.outcome = outcome = ExecutionOutcome()
        self.columns = []
        try:
            self._execute(statement, outcome, single_row, suppress_data)
        finally:
            self._reset_one_shot()
        return outcome

    def _execute(self, statement: Statement, outcome: ExecutionOutcome,
                 single_row: bool, suppress_data: bool) -> None:
        try:
            executed = statement.execute(self.params)
        except Exception as exc:
            if is_integrity_violation(exc) and self.policy.is_enabled(409):
                logger.debug(f'Integrity constraint violation, evaluating as no rows: {exc}')
                outcome.response = self.policy.evaluate(0)
                return
            outcome.failure_cause = exc
            self._log_error(f'{type(exc).__name__}: {exc}\n{traceback.format_exc()}')
            outcome.response = responses.server_error()
            return

        if not executed:
            self._log_error(f'Execution failed: {statement.error_info()!r}')
            outcome.response = responses.server_error()
            return

        outcome.was_success = True
        outcome.row_count = statement.row_count()

        response = self.policy.evaluate(outcome.row_count)
        if response is not None:
            outcome.response = response
            return

        self.columns = [statement.column_meta(i) for i in range(statement.column_count())]
        if suppress_data:
            return

        data = [] if outcome.row_count == 0 else cast_values(statement)
        if single_row and data:
            outcome.data = data[0]
        else:
            outcome.data = data

    def _reset_one_shot(self) -> None:
        self.policy.reset_one_shot()
        if self._suppress_data_one_shot:
            self._suppress_data = False
            self._suppress_data_one_shot = False
        if self._single_row_one_shot:
            self._single_row = False
            self._single_row_one_shot = False

    def _log_error(self, message: str) -> None:
        if self.connection.echo_errors:
            print(message)
        logger.error(message)

    def execution_failure(self) -> Self:
        """Mark the last execution unsuccessful and roll back an active transaction."""
        self.outcome.was_success = False
        if self.connection.using_transaction:
            self.connection.roll_back()
        return self

    # Outcome accessors

    @property
    def was_success(self) -> bool:
        return self.outcome.was_success

    @property
    def row_count(self) -> int:
        return self.outcome.row_count

    @property
    def data(self) -> list[dict[str, Any]] | dict[str, Any]:
        return self.outcome.data

    @property
    def failure_cause(self) -> BaseException | None:
        return self.outcome.failure_cause

    @property
    def response(self) -> Response | None:
        return self.outcome.response

    @property
    def first_row(self) -> dict[str, Any] | None:
        data = self.outcome.data
        if not data:
            return None
        if isinstance(data, dict):
            return data
        return data[0]

    @property
    def all_rows(self) -> list[dict[str, Any]] | dict[str, Any] | None:
        return self.outcome.data or None

    def to_frame(self) -> pd.DataFrame:
        """Captured rows as a pandas DataFrame."""
        return pandas_numpy_data_loader(self.outcome.data, self.columns)
