"""
Errors raised by `xurlquery.url.URLQuery`.

Only `URLQuery.require_parameter` raises `MissingParameter`; every other read
returns `None` when a key can't be found.
"""


class URLQueryError(Exception):
    """ Base for all xurlquery errors. """


class MalformedURL(URLQueryError, ValueError):
    """
    Raised when a url can't be parsed into an absolute url
    (ie: `scheme://host[:port]/path?query#fragment`).

    If `urllib.parse` raised the original error, it's chained as `__cause__`.
    """

    def __init__(self, url, reason: str = "not a valid absolute url"):
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed url ({url!r}): {reason}.")


class MissingParameter(URLQueryError, LookupError):
    """ Raised by `URLQuery.require_parameter` when the key is absent (after pruning). """

    def __init__(self, key: str):
        self.key = key
        super().__init__(f'Parameter "{key}" is required but missing.')
