"""Users section chrome. Renders only; no guard."""

template = "users/_layout.html"
