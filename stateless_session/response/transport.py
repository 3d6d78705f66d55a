"""Starlette cookie transport.

Writes SessionCookie objects as Set-Cookie headers on a Starlette response.
Cookies arriving before the response object exists are held until one is
attached.
"""

from http.cookies import CookieError, SimpleCookie
from typing import List, Optional

from starlette.responses import Response

from stateless_session.response.sink import CommitTrigger, SessionCookie


class ResponseCookieTransport:
    """Cookie writer bound to a Starlette response.

    Attributes:
        response: Response the headers are written to, once attached
    """

    def __init__(self, response: Optional[Response] = None):
        self.response = response
        self._held: List[SessionCookie] = []

    def add_cookie(self, cookie: SessionCookie) -> None:
        if self.response is None:
            self._held.append(cookie)
            return
        self._write(cookie)

    def attach(self, response: Response) -> None:
        """Bind the response and write any cookies held so far.

        Args:
            response: Response about to be returned to the client
        """
        self.response = response
        held, self._held = self._held, []
        for cookie in held:
            self._write(cookie)

    def _write(self, cookie: SessionCookie) -> None:
        self.response.set_cookie(
            key=cookie.name,
            value=cookie.value,
            max_age=cookie.max_age,
            path=cookie.path,
            secure=cookie.secure,
            httponly=cookie.httponly,
            samesite=cookie.samesite,
        )


def claim_cookies(response: Response, name: str) -> List[SessionCookie]:
    """Take every Set-Cookie for a name off a response.

    Lets cookies the application wrote itself go through the sink like any
    other write, so the response never carries two of them.

    Args:
        response: Response returned by the application
        name: Cookie name to take off

    Returns:
        The removed cookies, in header order
    """
    claimed: List[SessionCookie] = []
    kept = []
    for key, value in response.raw_headers:
        if key.lower() == b"set-cookie":
            cookie = _parse_set_cookie(value.decode("latin-1"), name)
            if cookie is not None:
                claimed.append(cookie)
                continue
        kept.append((key, value))
    if claimed:
        response.raw_headers[:] = kept
    return claimed


def _parse_set_cookie(header: str, name: str) -> Optional[SessionCookie]:
    parsed = SimpleCookie()
    try:
        parsed.load(header)
    except CookieError:
        return None
    if name not in parsed:
        return None

    morsel = parsed[name]
    return SessionCookie(
        name=name,
        value=morsel.value,
        max_age=int(morsel["max-age"]) if morsel["max-age"] else None,
        path=morsel["path"] or "/",
        secure=bool(morsel["secure"]),
        httponly=bool(morsel["httponly"]),
        samesite=morsel["samesite"] or None,
    )


def trigger_for_response(response: Response) -> CommitTrigger:
    """Classify the response action that commits the headers.

    Args:
        response: Response returned by the application

    Returns:
        REDIRECT for 3xx responses with a location, ERROR for 4xx and 5xx,
        FLUSH otherwise
    """
    status = response.status_code
    if 300 <= status < 400 and "location" in response.headers:
        return CommitTrigger.REDIRECT
    if status >= 400:
        return CommitTrigger.ERROR
    return CommitTrigger.FLUSH
