"""Admin area: signed-in users only, inside the admin chrome."""

from mwm.security.sessions import require_auth

template = "admin/_layout.html"


def layout(session, request):
    require_auth(session, request.url)
    return {"user": session.user}
