"""
Read, change and re-build the nested query parameters of a URL.

Public API:
- `URLQuery` / `url_query`: the url model and its shortcut.
- `URLQueryOptions` / `DefaultURLQueryOptions`: configuration.
- `CurrentURL`: the url used when `URLQuery` is given none.
- `URLQueryError`, `MalformedURL`, `MissingParameter`: errors.
"""
from xurlquery.url import URLQuery, URLQueryOptions, DefaultURLQueryOptions, url_query
from xurlquery.context import CurrentURL
from xurlquery.errors import URLQueryError, MalformedURL, MissingParameter
