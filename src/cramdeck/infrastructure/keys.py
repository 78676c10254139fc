def scoped_key(base_key: str, scope_id: str | int | None = None) -> str:
    """Namespace a storage key by study set or user, e.g. 'medcram_spaced_repetition:42'."""
    if scope_id is None or scope_id == "":
        return base_key
    return f"{base_key}:{scope_id}"
