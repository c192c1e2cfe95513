"""
Azure DevOps project URL parsing and URI comparison helpers.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

from typing import NamedTuple
from urllib.parse import unquote, urlsplit, urlunsplit


DEFAULT_PORTS = {
    'http': 80,
    'https': 443,
}


class ProjectUrl(NamedTuple):
    """
    A parsed Azure DevOps project URL.

    Two hosting styles are understood:

    * ``https://dev.azure.com/{organization}/{project}``
    * ``https://{organization}.visualstudio.com/{project}``
    """

    url: str
    organization: str
    organization_url: str
    project: str


    @classmethod
    def parse(cls, url: str) -> 'ProjectUrl':
        """
        Parse a project URL, raising ValueError if it is not one.
        """

        if not url:
            raise ValueError('project URL must be set')

        parts = urlsplit(url.strip())
        if parts.scheme not in DEFAULT_PORTS or not parts.hostname:
            raise ValueError(f'Not an absolute http(s) URL: {url}')

        host = parts.netloc
        segments = [s for s in parts.path.split('/') if s]

        if parts.hostname.lower() == 'dev.azure.com':
            if len(segments) < 2:
                raise ValueError(f'Expected {parts.scheme}://{host}/<organization>/<project>, got {url}')
            organization, project = segments[0], segments[1]
            organization_url = f'{parts.scheme}://{host}/{organization}'

        elif parts.hostname.lower().endswith('.visualstudio.com'):
            if len(segments) < 1:
                raise ValueError(f'Expected {parts.scheme}://{host}/<project>, got {url}')
            organization = parts.hostname.split('.', 1)[0]
            project = segments[0]
            organization_url = f'{parts.scheme}://{host}'

        else:
            raise ValueError(f'Unrecognized Azure DevOps project URL: {url}')

        return cls(
            url=url.strip(),
            organization=unquote(organization),
            organization_url=organization_url,
            project=unquote(project),
        )


    def __str__(self) -> str:
        return self.url


def normalize_uri(url: str) -> str:
    """
    Reduce a URL to a canonical form for equality checks. Scheme and
    host case, an explicit default port, a trailing slash, and any
    fragment are ignored.

    Raises ValueError if the URL is not absolute.
    """

    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    if not scheme or not parts.hostname:
        raise ValueError(f'Not an absolute URL: {url}')

    host = parts.hostname.lower()
    if ':' in host:
        host = f'[{host}]'

    port = parts.port
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        host = f'{host}:{port}'

    userinfo = parts.netloc.rpartition('@')[0]
    if userinfo:
        host = f'{userinfo}@{host}'

    path = parts.path.rstrip('/')
    return urlunsplit((scheme, host, path, parts.query, ''))


def same_uri(left: str, right: str) -> bool:
    """
    True if both URLs refer to the same resource after normalization.
    A URL that cannot be parsed never matches.
    """

    try:
        return normalize_uri(left) == normalize_uri(right)
    except ValueError:
        return False


# The end.
