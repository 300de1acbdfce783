def has_text(value) -> bool:
    """True when ``value`` is a string with at least one non-whitespace character"""
    return value is not None and value.strip() != ""
