"""Domain errors raised by the currency and stats services.

Everything derives from ``CurrencyServiceError`` so the HTTP layer can map
the whole family to a bad request, with ``EntityNotFoundError`` singled out
as a not-found.
"""


class CurrencyServiceError(Exception):
    """Invalid user input detected by a service."""


class EntityNotFoundError(CurrencyServiceError):
    pass


class CurrencyNotRegisteredError(EntityNotFoundError):
    """The uploaded file references a currency that was never created."""


class DuplicateCurrencyError(CurrencyServiceError):
    pass


class WrongTimePeriodError(CurrencyServiceError):
    pass


class CsvFileProcessError(CurrencyServiceError):
    """Base for everything that can go wrong while ingesting a CSV upload."""


class MalformedRowError(CsvFileProcessError):
    pass


class CurrencyMismatchError(CsvFileProcessError):
    def __init__(self, expected: str, found: str):
        super().__init__(
            f"Multiple currencies found, expected only '{expected}' but found '{found}'"
        )
        self.expected = expected
        self.found = found


class StreamReadError(CsvFileProcessError):
    pass
