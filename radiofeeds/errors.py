from __future__ import annotations


class RadioFeedsError(Exception):
    """Basisklasse aller Fehler dieses Pakets."""


class InvalidArgument(RadioFeedsError, ValueError):
    pass


class ConfigParseError(RadioFeedsError):
    pass


class CorruptStore(RadioFeedsError):
    def __init__(self, path: str, line: int, reason: str) -> None:
        super().__init__(f"Averages-Datei beschädigt: {path}:{line}: {reason}")
        self.path = path
        self.line = line
        self.reason = reason


class FetchError(RadioFeedsError):
    """Listing konnte nicht geladen oder gelesen werden."""


class NetworkError(FetchError):
    pass


class ParseError(FetchError):
    pass
