"""Home page."""

from mwm import Template


def handler():
    return Template("index.html")
