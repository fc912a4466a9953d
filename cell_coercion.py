import pandas as pd


def split_tags(value):
    if isinstance(value, (list, tuple)):
        return [str(t).strip() for t in value if str(t).strip()]
    if value is None:
        return []
    return [t.strip() for t in str(value).split(",") if t.strip()]


def coerce_cell_value(column_type, text):
    """Turn editor text into the stored value for a column of ``column_type``."""
    text = "" if text is None else str(text)
    stripped = text.strip()

    if column_type == "number":
        if stripped == "":
            return ""
        value = float(stripped)
        if value.is_integer() and "." not in stripped and "e" not in stripped.lower():
            return int(value)
        return value

    if column_type == "tags":
        return split_tags(stripped)

    if column_type == "date":
        if stripped == "":
            return ""
        stamp = pd.to_datetime(stripped, errors="raise", utc=True)
        return stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}Z"

    return text


def format_cell_value(column_type, value) -> str:
    """Plain text rendering used by the grid and the editor buffer."""
    if value is None:
        return ""
    if column_type == "tags":
        return ", ".join(split_tags(value))
    if column_type == "date" and value:
        try:
            stamp = pd.to_datetime(value, utc=True)
        except (ValueError, TypeError):
            return str(value)
        if pd.isna(stamp):
            return ""
        return stamp.tz_convert(None).strftime("%Y-%m-%d %H:%M")
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value)
