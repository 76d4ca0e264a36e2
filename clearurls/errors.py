from __future__ import annotations


class ClearUrlsError(Exception):
    """Base class for errors raised by the clearurls package."""


class RulesetError(ClearUrlsError):
    """The rule document could not be loaded or compiled into providers."""


class UrlDecompositionError(ClearUrlsError):
    """A URL could not be split into scheme, host and the remaining parts."""
