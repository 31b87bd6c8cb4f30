"""Exception and warning types raised by the permit pipeline."""


class FilmPermitError(Exception):
    pass


class SchemaError(FilmPermitError):
    """An input table is missing columns the pipeline needs."""


class ParseError(FilmPermitError):
    """Timestamp text did not match any accepted format."""

    def __init__(self, column: str, values: list):
        self.column = column
        self.values = values
        preview = ", ".join(repr(v) for v in values[:5])
        super().__init__(f"{len(values)} unparseable value(s) in {column!r}: {preview}")


class MalformedKeyError(FilmPermitError):
    """A ZIP-code field is empty, non-numeric or uses the wrong delimiter."""


class JoinMismatchError(FilmPermitError):
    """The two sides of a join disagree on key type or coordinate system."""


class MissingDataWarning(UserWarning):
    """Some boundaries had no matching value and were left as no data."""
