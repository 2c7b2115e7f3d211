"""Sign out: drop the session row and clear the cookie."""

from mwm import Redirect
from mwm.security.sessions import SIGN_IN_PATH


async def post(request, auth):
    cookie = await auth.destroy_session(request)
    return Redirect(SIGN_IN_PATH, status=303).with_cookie(cookie)
