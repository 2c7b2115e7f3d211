"""HTTP primitives: request, response, cookies, headers, forms."""

from mwm.http.cookies import SetCookie, parse_cookies
from mwm.http.forms import FormData, UploadFile
from mwm.http.headers import Headers
from mwm.http.query import QueryParams
from mwm.http.request import Request
from mwm.http.response import Redirect, Response, htmx_redirect

__all__ = [
    "FormData",
    "Headers",
    "QueryParams",
    "Redirect",
    "Request",
    "Response",
    "SetCookie",
    "UploadFile",
    "htmx_redirect",
    "parse_cookies",
]
