# Public Domain (-) 2013-2026 The Assetstamp Authors.
# See the Assetstamp UNLICENSE file for details.

"""Last-modified probing of remote source files."""

import logging

from email.utils import mktime_tz, parsedate_tz
from urllib.parse import urljoin

import requests

from requests.exceptions import RequestException

# ------------------------------------------------------------------------------
# Some Globals
# ------------------------------------------------------------------------------

MAX_REDIRECTS = 8
TIMEOUT = 10

log = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# Probe
# ------------------------------------------------------------------------------

def parse_http_date(value):
    parsed = parsedate_tz(value.strip())
    if parsed is None:
        return False
    return mktime_tz(parsed)

def last_modified(url, session=None, redirects=MAX_REDIRECTS, timeout=TIMEOUT):
    """Return the Unix last-modified time of ``url``.

    Redirects are followed by hand, up to ``redirects`` hops. The result is
    False when the url can't be fetched, and 0 when the response carries no
    Last-Modified header.
    """
    get_url = (session or requests).get
    try:
        response = get_url(
            url, stream=True, allow_redirects=False, timeout=timeout
            )
    except RequestException as err:
        log.warning("Couldn't probe %s (%s)" % (url, err))
        return False
    try:
        status = response.status_code
        location = response.headers.get('location')
        modified = response.headers.get('last-modified')
    finally:
        response.close()
    if status >= 400:
        log.warning("Couldn't probe %s (Got %d)" % (url, status))
        return False
    if location:
        if redirects <= 0:
            log.warning("Too many redirects while probing %s" % url)
            return False
        return last_modified(
            urljoin(url, location), session, redirects - 1, timeout
            )
    if modified:
        time = parse_http_date(modified)
        if time is False:
            log.warning(
                "Couldn't parse Last-Modified %r for %s" % (modified, url)
                )
        return time
    return 0
