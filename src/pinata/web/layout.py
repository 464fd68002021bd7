"""Shared page chrome for the script-free HTML pages."""

from html import escape

from pinata.consts import FOOTER_NOTE


def page_start(title: str) -> str:
    return (
        '<!doctype html><html><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width,initial-scale=1">'
        f"<title>{escape(title)}</title>"
        '<link rel="stylesheet" href="/static/style.css"></head><body>'
    )


def page_end() -> str:
    return f'<div class="footer-note">{FOOTER_NOTE}</div></body></html>'


def hidden_input(name: str, value: str) -> str:
    return f'<input type="hidden" name="{escape(name)}" value="{escape(value)}">'
