"""
Ambient "current url" for `xurlquery.url.URLQuery`.

When a `URLQuery` is created without a url, it falls back to whatever url the current
`CurrentURL` dependency has. By default that's `None`, in which case `URLQuery` raises
`xurlquery.errors.MalformedURL`.

Activate one for a block of code (or a whole request) like so:

>>> with CurrentURL(url="https://example.com/listings?page=2"):
...     URLQuery().get_parameter('page')
'2'

It can also be used as a decorator, or you can set the url on the current one:

>>> CurrentURL.grab().url = "https://example.com/"
"""
from typing import Optional

from xinject import Dependency


class CurrentURL(Dependency):
    """ Holds the url of the page/request currently being handled, if any. """

    def __init__(self, url: Optional[str] = None):
        self.url = url
