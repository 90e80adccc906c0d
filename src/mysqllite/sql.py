"""
SQL parameter processing.

Statements are written with ``:name`` placeholders. SQLite accepts them
as is; for MySQL (pyformat drivers) they are rewritten to ``%(name)s``
and literal percent signs are doubled, since the whole statement is
%-formatted by the driver.

Main entry points:
- `prepare_sql(sql, dialect)` - Rewrite placeholders for the dialect
- `placeholder_names(sql)` - Names of the placeholders a statement uses
- `normalize_value(value, ...)` - Trim/upper-case/wildcard a bound value
"""
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

__all__ = [
    'TokenType',
    'Token',
    'tokenize_sql',
    'placeholder_names',
    'prepare_sql',
    'wrap_wildcards',
    'normalize_value',
]


class TokenType(Enum):
    """Token types identified during SQL parsing."""
    SQL_TEXT = auto()
    STRING_LITERAL = auto()
    NAMED_PH = auto()           # :name
    PERCENT = auto()


@dataclass(slots=True)
class Token:
    """Token from SQL parsing."""
    type: TokenType
    text: str
    name: str | None = None


_TOKENIZE = re.compile(r"""
    (?P<string>'(?:[^'\\]|\\.|'')*'|"(?:[^"\\]|\\.|"")*"|`[^`]*`)
    |(?P<named>:(?P<pname>[A-Za-z_][A-Za-z0-9_]*))
    |(?P<percent>%)
""", re.VERBOSE | re.DOTALL)


def tokenize_sql(sql: str) -> list[Token]:
    """Parse SQL into tokens in a single pass.

    Parameters
        sql: SQL query string

    Returns
        List of tokens preserving all SQL text
    """
    tokens = []
    last_end = 0

    for match in _TOKENIZE.finditer(sql):
        start, end = match.span()

        if start > last_end:
            tokens.append(Token(TokenType.SQL_TEXT, sql[last_end:start]))

        if match.group('string'):
            tokens.append(Token(TokenType.STRING_LITERAL, match.group(0)))
        elif match.group('named'):
            tokens.append(Token(TokenType.NAMED_PH, match.group(0), match.group('pname')))
        else:
            tokens.append(Token(TokenType.PERCENT, match.group(0)))
        last_end = end

    if last_end < len(sql):
        tokens.append(Token(TokenType.SQL_TEXT, sql[last_end:]))

    return tokens


def placeholder_names(sql: str) -> list[str]:
    """Return placeholder names in order of first appearance."""
    names: list[str] = []
    for token in tokenize_sql(sql):
        if token.type is TokenType.NAMED_PH and token.name not in names:
            names.append(token.name)
    return names


def prepare_sql(sql: str, dialect: str = 'mysql') -> str:
    """Rewrite ``:name`` placeholders for the driver's parameter style.

    Parameters
        sql: SQL with ``:name`` placeholders
        dialect: 'mysql' or 'sqlite'

    Returns
        SQL ready to be executed with a mapping of parameters

    Raises
        ValueError: If dialect is unsupported
    """
    if dialect == 'sqlite':
        return sql
    if dialect != 'mysql':
        raise ValueError(f'Unknown dialect: {dialect}')

    result = []
    for token in tokenize_sql(sql):
        if token.type is TokenType.NAMED_PH:
            result.append(f'%({token.name})s')
        elif token.type is TokenType.PERCENT:
            result.append('%%')
        elif token.type is TokenType.STRING_LITERAL:
            result.append(token.text.replace('%', '%%'))
        else:
            result.append(token.text)
    return ''.join(result)


def wrap_wildcards(value: str) -> str:
    """Wrap a LIKE search term in single % wildcards.

    Extra % on either end are trimmed first; an empty term matches everything.
    """
    value = value.strip('%')
    return '%' if value == '' else f'%{value}%'


def normalize_value(value: Any, upper_case: bool = False,
                    with_wildcards: bool = False) -> Any:
    """Prepare a value for binding. Non-string values pass through."""
    if not isinstance(value, str):
        return value
    if upper_case:
        value = value.upper()
    value = value.strip()
    if with_wildcards:
        value = wrap_wildcards(value)
    return value
