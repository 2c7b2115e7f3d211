"""CMS area, gated on a signed-in session."""

from mwm.security.sessions import require_auth

template = "cms/_layout.html"


def layout(session, request):
    require_auth(session, request.url)
    return {"user": session.user}
