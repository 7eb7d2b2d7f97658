"""
Retrieve the release tarball over HTTP.

A single GET is issued; the open response is handed back so the archive
can be decoded while it downloads.
"""

import urllib.error
import urllib.request
from http.client import HTTPResponse

from .errors import FetchError


def get_stream(url: str, timeout: float | None = None) -> HTTPResponse:
    """
    Open a streaming GET request for url.

    Args:
        url: Archive URL
        timeout: Socket timeout in seconds (default: block indefinitely)

    Returns:
        The open response, readable as a byte stream

    Raises:
        FetchError: On a non-success status or a network failure
    """
    print(f"Downloading from: {url}")

    request = urllib.request.Request(url, method="GET")
    try:
        if timeout is None:
            response = urllib.request.urlopen(request)
        else:
            response = urllib.request.urlopen(request, timeout=timeout)
    except urllib.error.HTTPError as e:
        raise FetchError(e.code, str(e.reason), url) from e
    except urllib.error.URLError as e:
        raise FetchError(None, str(e.reason), url) from e

    # urlopen only raises for 4xx/5xx; anything else outside 2xx is a failure here too
    status = getattr(response, "status", 200)
    if not 200 <= status < 300:
        reason = getattr(response, "reason", "")
        response.close()
        raise FetchError(status, reason, url)

    return response
