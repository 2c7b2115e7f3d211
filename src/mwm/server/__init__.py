"""ASGI plumbing: request handling, error responses, negotiation, serving."""
