from importlib.resources import files
import json

__all__ = [
    "load_schema",
    "CACHE_RECORD_V1",
]

_cache = {}

def load_schema(name: str) -> dict:
    """Load and cache a JSONSchema by filename.

    Args:
        name: Schema filename (e.g., 'CacheRecordV1.json')

    Returns:
        Parsed JSON schema dictionary

    Raises:
        FileNotFoundError: If schema file doesn't exist
        json.JSONDecodeError: If schema file is invalid JSON
    """
    if name in _cache:
        return _cache[name]

    schema_file = files(__package__).joinpath(name)
    if not schema_file.is_file():
        raise FileNotFoundError(f"Schema file not found: {name}")

    _cache[name] = json.loads(schema_file.read_text(encoding="utf-8"))
    return _cache[name]

CACHE_RECORD_V1 = load_schema("CacheRecordV1.json")
