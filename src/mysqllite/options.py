import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

__all__ = ['DatabaseOptions', 'SUPPORTED_DRIVERS', 'ENVIRONMENT_VARIABLES']

SUPPORTED_DRIVERS = ('mysql', 'sqlite')

ENVIRONMENT_VARIABLES: dict[str, str] = {
    'DATABASE_DRIVER': 'drivername',
    'DATABASE_HOST': 'hostname',
    'DATABASE_PORT': 'port',
    'DATABASE_NAME': 'database',
    'DATABASE_USERNAME': 'username',
    'DATABASE_PASSWORD': 'password',  # pragma: allowlist secret
}


def _check_known(cls: type, overrides: Mapping[str, Any]) -> None:
    unknown = set(overrides) - {f.name for f in fields(cls)}
    if unknown:
        raise ValueError(f'Unknown database options: {sorted(unknown)}')


@dataclass
class DatabaseOptions:
    """Options

    supported driver names: `mysql`, `sqlite`

    Connection values are normally sourced from the environment with
    `DatabaseOptions.from_env`; keyword overrides win over the environment.
    """
    drivername: str = 'mysql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 3306
    timeout: int = 0
    charset: str = 'utf8mb4'

    def __post_init__(self):
        if self.drivername not in SUPPORTED_DRIVERS:
            raise ValueError(f'drivername must be one of: {list(SUPPORTED_DRIVERS)}')
        if self.drivername == 'mysql':
            if not self.hostname:
                raise ValueError('hostname is required for mysql')
            if not self.database:
                raise ValueError('database is required for mysql')
        if self.drivername == 'sqlite' and not self.database:
            raise ValueError('database is required for sqlite')
        self.port = int(self.port) if self.port else 0
        self.timeout = int(self.timeout) if self.timeout else 0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None,
                 **overrides: Any) -> 'DatabaseOptions':
        """Build options from DATABASE_* environment variables plus overrides.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for variable, name in ENVIRONMENT_VARIABLES.items():
            if environ.get(variable):
                values[name] = environ[variable]
        _check_known(cls, overrides)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def replace(self, **overrides: Any) -> 'DatabaseOptions':
        """Copy with some values overridden."""
        _check_known(type(self), overrides)
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(overrides)
        return type(self)(**values)
