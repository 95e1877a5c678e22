"""Spreadsheet row helpers: known business columns and numeric coercion."""

import math
import re
from typing import Any, Optional

# Column headers the sheet reader is expected to produce. Rows may carry
# any other passthrough columns as well.
KNOWN_FIELDS: tuple[str, ...] = (
    "Project",
    "Program",
    "Portfolio",
    "Project Manager",
    "Vendor",
    "Contract ID",
    "Contract Start Date",
    "Contract End Date",
    "Contract Ceiling Price",
    "Contract Target Price",
    "Actual Contract Spend",
    "Expiring Soon",
    "Resource Name",
    "Role",
    "Allocated Hours",
    "Actual Hours",
    "Planned Cost",
    "Actual Cost",
    "Milestone Status",
    "Update Date",
)

NUMERIC_FIELDS: tuple[str, ...] = (
    "Contract Ceiling Price",
    "Contract Target Price",
    "Actual Contract Spend",
    "Allocated Hours",
    "Actual Hours",
    "Planned Cost",
    "Actual Cost",
)

_CURRENCY_NOISE = re.compile(r"[$,±%\s]")


def coerce_number(value: Any) -> Optional[float]:
    """
    Parse a number that may be formatted as currency or a percentage.
    "$12,345" -> 12345.0, "±$1,200" -> 1200.0, "70%" -> 70.0, "-$300" -> -300.0.
    Returns None for bools, empty or non-numeric strings, and non-finite values.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _CURRENCY_NOISE.sub("", value)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def numeric_fields(input_data: dict[str, Any]) -> dict[str, Optional[float]]:
    """Coerced values for the known numeric columns (None when missing or unparsable)."""
    return {name: coerce_number(input_data.get(name)) for name in NUMERIC_FIELDS}
