# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Internal pandas helpers"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import pandas as pd

from ..models.record import Record


def records_to_dataframe(records: Iterable[Record], include_metadata: bool = True) -> pd.DataFrame:
    """Convert records to a DataFrame, one row per record.

    :param records: Records to convert.
    :param include_metadata: When True (default), ``id``, ``table`` and ``state`` columns lead the frame.
    """
    rows: List[Dict[str, Any]] = []
    for record in records:
        row: Dict[str, Any] = {}
        if include_metadata:
            row.update({"id": record.id, "table": record.table, "state": record.state.value})
        for k, v in record.items():
            row[k] = v.id if isinstance(v, Record) else v
        rows.append(row)
    return pd.DataFrame(rows)


def dataframe_to_records(df: pd.DataFrame, table: str, na_as_null: bool = False) -> List[Record]:
    """Convert a DataFrame to transient records, converting Timestamps to dates.

    :param df: Input DataFrame. Each column is a field name.
    :param table: Record kind for every row.
    :param na_as_null: When False (default), missing values are omitted from each record.
        When True, missing values are included as None (clearing the field on update).
    """
    records = []
    for row in df.to_dict(orient="records"):
        clean = {}
        for k, v in row.items():
            if pd.notna(v):
                if isinstance(v, pd.Timestamp):
                    v = v.date()
                elif hasattr(v, "item"):
                    # numpy scalar -> Python scalar
                    v = v.item()
                clean[k] = v
            elif na_as_null:
                clean[k] = None
        records.append(Record(table, clean))
    return records
