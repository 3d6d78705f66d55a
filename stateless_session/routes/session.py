"""Session API routes.

This module exposes the cookie-carried session over a small JSON API:
reading the session, setting and removing attributes, invalidating it,
redirecting and streaming after a change.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse, StreamingResponse
from pydantic import BaseModel, Field

from stateless_session.middleware import commit_session, get_request_session
from stateless_session.response.sink import CommitTrigger
from stateless_session.session.manager import RequestSession
from stateless_session.session.models import StatelessSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


class AttributeRequest(BaseModel):
    """Request body for setting a session attribute.

    Attributes:
        value: Attribute value to store
    """
    value: str = Field(..., description="Attribute value")


def session_to_dict(session: StatelessSession) -> Dict[str, Any]:
    """Convert a session to its JSON representation.

    Args:
        session: Session to convert

    Returns:
        Dictionary with the session ID, creation time and attributes
    """
    return {
        "id": session.id,
        "created_at": session.created_at,
        "creation_time": session.creation_time.isoformat(),
        "is_new": session.is_new,
        "invalidated": session.invalidated,
        "attributes": dict(session.attributes),
    }


@router.get("")
async def read_session(
    handle: RequestSession = Depends(get_request_session),
) -> Dict[str, Any]:
    """Return the current session without creating one.

    Raises:
        HTTPException: 404 if the request carries no session
    """
    session = handle.get_existing()
    if session is None:
        raise HTTPException(status_code=404, detail="No session")
    return session_to_dict(session)


@router.put("/attributes/{key}")
async def set_attribute(
    key: str,
    body: AttributeRequest,
    handle: RequestSession = Depends(get_request_session),
) -> Dict[str, Any]:
    """Set a session attribute, creating the session if needed."""
    session = handle.get_or_create()
    session.set_attribute(key, body.value)
    return session_to_dict(session)


@router.delete("/attributes/{key}")
async def remove_attribute(
    key: str,
    handle: RequestSession = Depends(get_request_session),
) -> Dict[str, Any]:
    """Remove a session attribute.

    Raises:
        HTTPException: 404 if the request carries no session
    """
    session = handle.get_existing()
    if session is None:
        raise HTTPException(status_code=404, detail="No session")
    session.remove_attribute(key)
    return session_to_dict(session)


@router.post("/invalidate")
async def invalidate_session(
    handle: RequestSession = Depends(get_request_session),
) -> Dict[str, Any]:
    """Invalidate the session; the response removes the cookie."""
    session = handle.get_existing()
    if session is None:
        return {"invalidated": False}
    session.invalidate()
    logger.info(f"Invalidated session {session.id}")
    return {"invalidated": True}


@router.get("/redirect")
async def redirect_with_session(
    to: str = Query("/health", description="Relative path to redirect to"),
    handle: RequestSession = Depends(get_request_session),
) -> RedirectResponse:
    """Record the redirect target in the session and redirect there.

    Raises:
        HTTPException: 400 if the target is not a path on this site
    """
    if not to.startswith("/") or to.startswith("//"):
        raise HTTPException(status_code=400, detail="Redirect target must be a relative path")
    handle.get_or_create().set_attribute("last_redirect", to)
    return RedirectResponse(url=to, status_code=302)


@router.get("/stream")
async def stream_session(
    request: Request,
    handle: RequestSession = Depends(get_request_session),
) -> StreamingResponse:
    """Stream the session's attribute names.

    The session cookie is committed before the body starts.
    """
    session = handle.get_or_create()
    session.set_attribute("last_stream", "started")
    commit_session(request, CommitTrigger.STREAM)

    async def body():
        for name in session.attribute_names():
            yield f"{name}\n"

    return StreamingResponse(body(), media_type="text/plain")
