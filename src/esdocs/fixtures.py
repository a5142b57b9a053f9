"""
esdocs Fixtures — Bulk Data Loading
===================================

Loads a static JSON fixture wholesale for ``DocumentService.bulk_upsert``.
No streaming: the whole file is read and parsed at once.

Accepted layouts:
    [ {...}, {...} ]                  top-level array
    { "movies": [ {...}, {...} ] }    array under a key
"""

import json
from pathlib import Path
from typing import List, Optional, Union

SAMPLE_FIXTURE = Path(__file__).parent / "data" / "movies.json"

# Default mapping for the movies demo index; title and phase drive autocomplete
MOVIES_MAPPING = {
    "properties": {
        "id": {"type": "keyword"},
        "title": {"type": "completion", "analyzer": "simple"},
        "phase": {"type": "completion", "analyzer": "simple"},
        "year": {"type": "integer"},
        "director": {"type": "text", "analyzer": "english"}
    }
}


def load_fixture(
    path: Union[str, Path] = SAMPLE_FIXTURE,
    key: Optional[str] = None
) -> List[dict]:
    """
    Read every record from a JSON fixture.

    Args:
        path: Fixture file
        key: Member holding the records when the top level is an object.
            If omitted, the object must have exactly one list member.

    Returns:
        List of records

    Raises:
        ValueError: If no record array can be found
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        return data

    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON array or object")

    if key is not None:
        records = data.get(key)
        if not isinstance(records, list):
            raise ValueError(f"{path}: member {key!r} is not an array")
        return records

    arrays = [v for v in data.values() if isinstance(v, list)]
    if len(arrays) != 1:
        raise ValueError(f"{path}: pass key= to choose among {len(arrays)} arrays")
    return arrays[0]
