"""
Helper class to read, change and re-build the query parameters of a URL.

Main class:
- `URLQuery`

It parses a url and keeps its query parameters in a nested dict, so you don't have to
concatenate query strings by hand.

## Dot-Notation Keys
[dot-notation-keys]: #dot-notation-keys

Every method that takes a key lets you reach into nested parameters with dots:

>>> url = URLQuery("https://example.com/search?filters[price][min]=10")
>>> url.get_parameter('filters.price.min')
'10'
>>> url.set_parameters({'filters.price.max': 99}).build_url()
'https://example.com/search?filters%5Bprice%5D%5Bmin%5D=10&filters%5Bprice%5D%5Bmax%5D=99'

Nested parameters (and lists) are written back into the query string with
bracket-nested key names, ie: `filters[price][min]=10` and `tags[0]=a`.
This is the way PHP/Rack style servers decode them.

## Empty Values
[empty-values]: #empty-values

After the url is parsed, and after each method that changes the parameters, empty values
are pruned out: `''`, `None` and empty lists are removed (recursively, see
`xurlquery.params.prune`). Keys in `URLQueryOptions.numeric_keys` keep their `0`/`'0'`
values and empty lists.

## No URL
[no-url]: #no-url

If you don't pass in a url (or pass in a blank one), `URLQuery` will use the url of the
current `xurlquery.context.CurrentURL` dependency instead. You can ask for `None` back in
that case, via `URLQuery.to_string`:

>>> with CurrentURL(url="https://example.com/"):
...     URLQuery().to_string(allow_none_if_empty_url=True) is None
True
"""
from __future__ import annotations
from typing import (
    Optional,
    Iterable,
    Mapping,
    Union,
    Any,
    FrozenSet,
)
from copy import deepcopy
from urllib import parse as urlparser
from types import MappingProxyType
from dataclasses import dataclass
import logging

from xloop import xloop
from xsentinels import Default

from xurlquery import params as _params
from xurlquery.context import CurrentURL
from xurlquery.errors import MalformedURL, MissingParameter
from xurlquery.params import Parameters

log = logging.getLogger(__name__)

Keys = Union[str, Iterable[str]]
""" A single dot-notation key or an iterable of them. """

_default_ports = {'http': 80, 'https': 443}

# Characters left as-is when quoting a path or fragment (already-encoded `%XX` included).
_path_safe = "/%:@!$&'()*+,;="
_fragment_safe = _path_safe + "?"


@dataclass(frozen=True)
class URLQueryOptions:
    numeric_keys: FrozenSet[str] = frozenset({'distance'})
    """ Parameter names where a `0` (or `'0'`) is a meaningful value.

        These keys are only pruned when their value is `''` or `None`.
        Default is `distance`, as a search radius of zero is a real search.
    """

    safe: str = ''
    """ Characters that won't be percent-encoded in the query string.

        Default is to encode everything, like a browser does. Use `'[]'` if you want to
        keep the brackets readable, ie: `a[b]=c` instead of `a%5Bb%5D=c`.
    """


DefaultURLQueryOptions = URLQueryOptions()
""" Used when `URLQuery` is not given any options. """


class URLQuery(object):
    """
    Parses a url and allows you to read/change its query parameters, path, host and fragment.

    The methods that mutate self return self, so you can chain them together:

    >>> URLQuery("https://example.com/ads?page=2").remove_parameter('page').set_path(
    ...     '/ads/cars'
    ... ).build_url()
    'https://example.com/ads/cars'

    For details on keys, see [Dot-Notation Keys](#dot-notation-keys).
    For what is removed as empty, see [Empty Values](#empty-values).
    """

    def __init__(
        self,
        url: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        secure: Optional[bool] = None,
        *,
        options: URLQueryOptions = Default,
    ):
        """
        Args:
            url: Absolute url to parse, ie: "https://example.com/path?key=value#fragment".
                If `None` or blank, the url of the current `xurlquery.context.CurrentURL`
                is used instead (see [No URL](#no-url)).

            parameters: Extra parameters to set on top of the ones parsed from the url.
                Keys can use dot-notation, and take priority over parsed ones.

            secure: `True` forces the scheme to `https`, `False` forces `http`.
                `None` (default) leaves the scheme as-is.

            options: See `URLQueryOptions`. Defaults to `DefaultURLQueryOptions`.

        Raises:
            xurlquery.errors.MalformedURL: If the url can't be parsed, is not absolute or
                there is no url and no current url.
        """
        self._options = DefaultURLQueryOptions if options is Default else options
        self._original_url = url

        if not url:
            url = CurrentURL.grab().url
            log.debug("No url given to URLQuery, using current url (%s).", url)
            if not url:
                raise MalformedURL(url, "no url given and there is no current url")

        self._parse(url)

        if secure is True:
            self._scheme = 'https'
        elif secure is False:
            self._scheme = 'http'

        if parameters:
            for key, value in parameters.items():
                _params.set_value(self._parameters, key, value)

        self._prune()

    # ----------------------------------------
    # --------- Basic URL attributes ---------

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> Optional[int]:
        return self._port

    @property
    def path(self) -> str:
        return self._path

    @property
    def fragment(self) -> Optional[str]:
        return self._fragment

    @property
    def options(self) -> URLQueryOptions:
        return self._options

    @property
    def original_url(self) -> Optional[str]:
        """ The url exactly as it was passed into `URLQuery.__init__`. """
        return self._original_url

    @property
    def parameters(self) -> MappingProxyType:
        """Returns a live-updating, read-only view of the parameters."""
        return MappingProxyType(self._parameters)

    def set_path(self, path: Optional[str]) -> URLQuery:
        """Sets the path, adding a leading `/` if needed and percent-encoding characters
        that can't be in a path (ie: `?`, `#` and spaces).
        `self` is returned, so you can chain this with other method calls.
        """
        path = path or ''
        if not path.startswith('/'):
            path = f'/{path}'
        self._path = urlparser.quote(path, safe=_path_safe)
        return self

    def set_host(self, host: str) -> URLQuery:
        """
        Sets the host name (lower-cased). IPv6 addresses can be passed in with or without
        their brackets.

        Raises:
            xurlquery.errors.MalformedURL: If host is not a bare host name, ie: it has a
                port, user-info or path in it.
        """
        if host and host.count(":") > 1 and not host.startswith("["):
            # Bare IPv6 address.
            host = f"[{host}]"
        try:
            result = urlparser.urlsplit(f"//{host}")
            port = result.port
        except ValueError as e:
            raise MalformedURL(host, str(e)) from e

        extras = (port, result.username, result.path, result.query, result.fragment)
        if not result.hostname or any(extra not in (None, "") for extra in extras):
            raise MalformedURL(host, "not a valid host name")

        self._host = result.hostname
        return self

    def set_fragment(self, fragment: Optional[str] = '') -> URLQuery:
        """ Sets the fragment (without the `#`); a blank/`None` fragment removes it. """
        self._fragment = urlparser.quote(fragment, safe=_fragment_safe) if fragment else None
        return self

    def remove_fragment(self) -> URLQuery:
        self._fragment = None
        return self

    # -------------------------------------
    # --------- Parameter Mutation ---------

    def set_parameters(self, parameters: Optional[Mapping[str, Any]]) -> URLQuery:
        """Sets each key/value in parameters, replacing any existing value with the same key.
        Keys can use dot-notation. Empty values are pruned afterwards.

        `self` is returned, so you can chain this with other method calls.
        """
        if parameters:
            for key, value in parameters.items():
                _params.set_value(self._parameters, key, value)
        self._prune()
        return self

    def set_parameter(self, key: str, value: Any) -> URLQuery:
        """ Same as `self.set_parameters({key: value})`. """
        return self.set_parameters({key: value})

    def remove_parameter(self, key: str) -> URLQuery:
        """Removes the value/subtree at key, if key does not exist nothing happens.
        `self` is returned, so you can chain this with other method calls.
        """
        return self.remove_parameters(key)

    def remove_parameters(self, keys: Keys, *args: str) -> URLQuery:
        """Removes each key; you can pass in a str, an iterable or several arguments.
        `self` is returned, so you can chain this with other method calls.
        """
        for key in xloop(keys, args):
            _params.delete_value(self._parameters, key)
        self._prune()
        return self

    def remove_all_parameters(self) -> URLQuery:
        self._parameters.clear()
        return self

    # -------------------------------------
    # --------- Parameter Lookups ---------

    def has_parameter(self, key: str) -> bool:
        return _params.has_value(self._parameters, key)

    def has_parameters(self, keys: Keys, *args: str) -> bool:
        """ Returns True only if every key passed in has a value. """
        return all(self.has_parameter(key) for key in xloop(keys, args))

    def get_parameter(self, key: str) -> Any:
        """ Returns the value at key, or `None` if there is no value for key. """
        return _params.get_value(self._parameters, key)

    def require_parameter(self, key: str) -> Any:
        """
        Returns the value at key.

        Raises:
            xurlquery.errors.MissingParameter: If there is no value for key.
        """
        value = self.get_parameter(key)
        if value is None:
            raise MissingParameter(key)
        return value

    def get_parameters(self, keys: Keys, *args: str) -> Parameters:
        """Returns a new dict with only the keys that were found, nested the same way they
        are in self. Values are not copied.
        """
        result = {}
        missing = object()
        for key in xloop(keys, args):
            value = _params.get_value(self._parameters, key, missing)
            if value is not missing:
                _params.set_value(result, key, value)
        return result

    def get_parameters_excluding(self, keys: Keys, *args: str) -> Parameters:
        """ Returns a deep-copy of all parameters, without the passed in keys. """
        result = deepcopy(self._parameters)
        for key in xloop(keys, args):
            _params.delete_value(result, key)
        return result

    def get_all_parameters(self) -> Parameters:
        """Returns the parameters dict its self (not a copy); changes you make to it will
        change self.
        """
        return self._parameters

    # ----------------------------
    # --------- Building ---------

    def build_url(self) -> str:
        """
        Returns the absolute url, ie: `scheme://host[:port]/path?query#fragment`.

        The query is generated from the parameters, see
        [Dot-Notation Keys](#dot-notation-keys); it's left out if there are no parameters.
        """
        netloc = self._host
        if ':' in netloc:
            # IPv6 address.
            netloc = f'[{netloc}]'

        port = self._port
        if port is not None and port != _default_ports.get(self._scheme):
            netloc = f'{netloc}:{port}'

        return urlparser.urlunsplit(
            (self._scheme, netloc, self._path, self._query_string(), self._fragment or '')
        )

    def build_relative_url(self) -> str:
        """ Returns the url without scheme/host/port, ie: `/path?query#fragment`. """
        return urlparser.urlunsplit(
            ('', '', self._path, self._query_string(), self._fragment or '')
        )

    def to_string(self, allow_none_if_empty_url: bool = False) -> Optional[str]:
        """
        Returns `URLQuery.build_url`, unless `allow_none_if_empty_url` is True and no url
        (or a blank one) was passed into `URLQuery.__init__`; then `None` is returned.
        """
        if allow_none_if_empty_url and not self._original_url:
            return None
        return self.build_url()

    def clone(self) -> URLQuery:
        """
        Returns a brand new `URLQuery`, made by parsing `self.build_url()`.

        Since the parameters go through the query string, values come back as strings,
        ie: a `5` parameter will be `'5'` in the clone.
        """
        url = self.build_url()
        log.debug("Cloning URLQuery via (%s).", url)
        return type(self)(url, options=self._options)

    def __copy__(self):
        return self.clone()

    def __str__(self):
        return self.build_url()

    def __repr__(self):
        return f"{type(self).__name__}('{self}')"

    # ---------------------------
    # --------- Private ---------

    def _parse(self, url: str):
        try:
            result: urlparser.SplitResult = urlparser.urlsplit(url)
            port = result.port
        except ValueError as e:
            raise MalformedURL(url, str(e)) from e

        if not result.scheme or not result.hostname:
            raise MalformedURL(url, "url must have a scheme and host")

        self._scheme = result.scheme
        self._host = result.hostname
        self._port = port
        self._path = result.path
        self._fragment = result.fragment or None
        self._parameters = _params.decode_query(result.query)

    def _query_string(self) -> str:
        pairs = _params.encode_query(self._parameters)
        return urlparser.urlencode(pairs, safe=self._options.safe)

    def _prune(self):
        # In place, so views from `parameters` and `get_all_parameters` stay live.
        pruned = _params.prune(self._parameters, self._options.numeric_keys)
        self._parameters.clear()
        self._parameters.update(pruned)

    _scheme: str
    _host: str
    _port: Optional[int] = None
    _path: str = ''
    _fragment: Optional[str] = None
    _original_url: Optional[str] = None
    _parameters: Parameters


def url_query(
    url: Optional[str] = None,
    parameters: Optional[Mapping[str, Any]] = None,
    secure: Optional[bool] = None,
) -> URLQuery:
    """ Shortcut for `URLQuery(url, parameters, secure)`. """
    return URLQuery(url, parameters, secure)
