import re


def first_group(pattern: str, text: str) -> str | None:
    """First capture group of a case-insensitive search, stripped."""
    match = re.search(pattern, text, re.IGNORECASE)
    if match is None:
        return None
    return match.group(1).strip()


def to_float(value: str) -> float | None:
    try:
        return float(value.replace(",", ""))
    except ValueError:
        return None


def format_number(value: float) -> str:
    return f"{value:g}"


def table_pairs(tables) -> list[tuple[str, str]]:
    """(label, value) pairs from every row with at least two cells."""
    pairs: list[tuple[str, str]] = []
    for table in tables:
        for row in table.rows:
            if len(row) >= 2:
                pairs.append((row[0].strip(), row[1].strip()))
    return pairs
