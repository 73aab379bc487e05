"""
Snapshot Codec

Serializes the books to the backup JSON format and parses it back:

    {accounts: [...], entries: [...], inventory: [...], settings: {...},
     timestamp: "<ISO-8601>"}

Keys are camelCase on the wire. Export is pure; import either returns a
complete snapshot or raises ImportFormatError, never a partial result.
"""

import json
from collections.abc import Mapping
from datetime import date
from typing import Any, Optional, Union

from pydantic import ValidationError

from smart_accountant.engine.exceptions import ImportFormatError
from smart_accountant.engine.ledger import Ledger
from smart_accountant.models.ledger import AppSettings, LedgerSnapshot


REQUIRED_FIELDS = ("accounts", "entries")


def export_snapshot(ledger: Ledger, app_settings: Optional[AppSettings] = None) -> LedgerSnapshot:
    return ledger.to_snapshot(app_settings)


def snapshot_to_json(snapshot: LedgerSnapshot, indent: Optional[int] = 2) -> str:
    return snapshot.model_dump_json(by_alias=True, indent=indent)


def snapshot_to_dict(snapshot: LedgerSnapshot) -> dict[str, Any]:
    return snapshot.model_dump(mode="json", by_alias=True)


def backup_filename(day: Optional[date] = None) -> str:
    """File name used for downloadable backups."""
    day = day or date.today()
    return f"smart_accountant_backup_{day.isoformat()}.json"


def import_snapshot(raw: Union[str, bytes, Mapping[str, Any]]) -> LedgerSnapshot:
    """
    Parse and validate a snapshot.

    Raises:
        ImportFormatError: unparsable input, missing `accounts` or `entries`,
            invalid records or duplicate ids
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ImportFormatError(f"Snapshot is not valid JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise ImportFormatError("Snapshot must be a JSON object")

    missing = [name for name in REQUIRED_FIELDS if data.get(name) is None]
    if missing:
        raise ImportFormatError(
            f"Snapshot is missing required fields: {', '.join(missing)}"
        )

    try:
        snapshot = LedgerSnapshot.model_validate(dict(data))
    except ValidationError as e:
        raise ImportFormatError(
            f"Snapshot contains invalid records ({e.error_count()} errors)"
        ) from e

    for label, records in (
        ("account", snapshot.accounts),
        ("entry", snapshot.entries),
        ("inventory item", snapshot.inventory),
    ):
        ids = [record.id for record in records]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ImportFormatError(
                f"Snapshot has duplicate {label} ids: {', '.join(duplicates)}"
            )

    return snapshot
