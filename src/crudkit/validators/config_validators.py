"""Small normalizers applied to raw environment values before pydantic validation."""


def to_uppercase(value: str | None) -> str | None:
    """
    Strip and uppercase a string, passing None through.
    """
    if value is None:
        return None
    return value.strip().upper()


def to_lowercase(value: str | None) -> str | None:
    """
    Strip and lowercase a string, passing None through.
    """
    if value is None:
        return None
    return value.strip().lower()


def empty_to_none(value: str | None) -> str | None:
    # env files often carry `DATABASE_URL=` with nothing after it
    if value is None or not str(value).strip():
        return None
    return value
