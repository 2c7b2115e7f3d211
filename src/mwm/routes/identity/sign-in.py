"""Sign-in form.

A successful htmx submit answers 200 with ``HX-Redirect``; a plain form
post gets a 303. Failed attempts re-render the form with one generic
error, whichever credential was wrong.
"""

from mwm import Fragment, Redirect, Template
from mwm.forms import SignInForm
from mwm.http.response import htmx_redirect
from mwm.security.sessions import safe_return_url
from mwm.validation import parse

TEMPLATE = "identity/sign-in.html"


def _form(request, **context):
    context = {"email": "", "errors": {}, "error": "", "return_url": "/", **context}
    if request.is_htmx:
        return Fragment(TEMPLATE, "form", **context)
    return Template(TEMPLATE, **context)


def handler(request):
    return Template(
        TEMPLATE,
        email="",
        errors={},
        error="",
        return_url=safe_return_url(request.query.get("returnUrl")),
    )


async def post(request, auth):
    form = await request.form()
    return_url = safe_return_url(form.get("returnUrl"))

    result = parse(SignInForm, form)
    if not result:
        return _form(
            request,
            email=form.get("email", ""),
            errors=result.field_errors,
            return_url=return_url,
        )

    outcome = await auth.authenticate(result.data.email, result.data.password)
    if not outcome.ok:
        return _form(request, email=result.data.email, error=outcome.error, return_url=return_url)

    cookie = await auth.create_session(outcome.user.id)
    if request.is_htmx:
        return htmx_redirect(return_url, cookie)
    return Redirect(return_url, status=303).with_cookie(cookie)
