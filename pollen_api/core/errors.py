"""
pollen_api/core/errors.py
Failure taxonomy shared by the scraper, the cache and the HTTP layer.
  • FetchError  → upstream unreachable or non-success status
  • ParseError  → markup or a measurement value did not look as expected
  • CacheEmpty  → no snapshot yet, transient (a rebuild has been requested)
"""


class PollenError(Exception):
    """Base class for everything this service raises on purpose."""


class FetchError(PollenError):
    pass


class ParseError(PollenError):
    def __init__(self, message: str, value: str = ""):
        super().__init__(message)
        self.value = value


class CacheEmpty(PollenError):
    def __init__(self, message: str = "Cache is empty, try again in a few seconds"):
        super().__init__(message)
