from collections.abc import Sequence
from typing import Any

import pandas as pd

from mysqllite.types import ColumnMeta

__all__ = ['iterdict_data_loader', 'pandas_numpy_data_loader']


def iterdict_data_loader(data, columns=None, **kwargs) -> list[dict]:
    """Minimal data loader.

    A single row (dict) is wrapped in a list.
    """
    if not data:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


def _column_types(columns: Sequence[ColumnMeta]) -> dict[str, str]:
    return {col.name: col.native_type for col in columns}


def pandas_numpy_data_loader(data, columns: Sequence[ColumnMeta] | None = None,
                             **kwargs: Any) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    Native column types are kept in the DataFrame.attrs attribute.
    """
    columns = list(columns or [])
    names = [col.name for col in columns]
    rows = iterdict_data_loader(data)

    if not rows:
        df = pd.DataFrame(columns=names)
    else:
        df = pd.DataFrame.from_records(rows, columns=names or None)
    df.attrs['column_types'] = _column_types(columns)
    return df
