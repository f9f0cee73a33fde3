"""Identifier generators.

Table ids end up inside physical table names and resolver data source
bindings, so they must stay within DynamoDB's table-name alphabet; CUID2
output (lowercase letters and digits, letter first) always does.
"""

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """Return a new CUID2 (used for table ids and in-memory message ids)."""
    value = _next_cuid()
    if not isinstance(value, str) or not value.isalnum():
        raise TypeError(f"Unexpected CUID value: {value!r}")
    return value
