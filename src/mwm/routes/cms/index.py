from mwm import Template


def handler():
    return Template("cms/index.html")
