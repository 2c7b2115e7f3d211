"""Echo endpoint, handy for checking request ids and body parsing."""

from mwm.api.health import now_iso
from mwm.api.router import ApiContext, ApiInput, ApiRouter
from mwm.api.schemas import EchoInput, EchoOutput


def echo(input: ApiInput[None, None, EchoInput], ctx: ApiContext) -> EchoOutput:
    """Echo a message back with the request id."""
    return EchoOutput(message=input.body.message, request_id=ctx.request_id, timestamp=now_iso())


def register(api: ApiRouter) -> None:
    api.endpoint("POST", "/echo", tags=("echo",), body=EchoInput, response=EchoOutput)(echo)
