"""Document composition engine.

Turns the fragments picked in the composer (opening, recipient, body,
closing, sender profile and an optional resolved signature image) into a
:class:`ComposedDocument` holding a markup rendering and a plain-text
rendering. Both renderings come out of a single call over the same inputs;
nothing here performs I/O or raises for empty or missing fields.
"""

from typing import List, Optional

from letterpress.utils.config import ComposerConfig

from .formatting import (
    ensure_trailing_comma,
    escape_markup,
    strip_trailing_comma,
    to_markup_lines,
)
from .models import ComposedDocument, ImagePayload, SenderProfile

IMAGE_ALT_TEXT = "Signature image"
CLOSING_STYLE = "margin-top:1rem;"

_DEFAULT_CONFIG = ComposerConfig()


## Fragment helpers


def build_greeting(opening: str, recipient_name: str) -> str:
    """Greeting line without its final punctuation.

    A recipient name only ever addresses an opening: with no opening the
    greeting is empty.
    """
    base = strip_trailing_comma(opening or "")
    if not base:
        return ""

    name = (recipient_name or "").strip()
    return f"{base} {name}" if name else base


def _profile_lines(profile: SenderProfile) -> List[str]:
    role_line = ", ".join(part for part in (profile.role, profile.department) if part)
    lines = [
        profile.display_name,
        role_line,
        profile.organization,
        profile.location.address if profile.location else "",
    ]
    return [line for line in lines if line]


def _image_markup(image: ImagePayload, width: int) -> str:
    style = (
        f"display:block;width:{width}px;height:auto;margin-top:1rem;"
        "border:0;outline:0;text-decoration:none;"
    )
    return (
        f'<img src="{image.data_uri}" width="{width}" '
        f'style="{style}" alt="{IMAGE_ALT_TEXT}" />'
    )


## Renderers


def render_profile(
    profile: Optional[SenderProfile],
    image: Optional[ImagePayload] = None,
    config: Optional[ComposerConfig] = None,
) -> str:
    """Markup for the profile block alone (also used by signature previews)."""
    if profile is None:
        return ""

    config = config or _DEFAULT_CONFIG
    parts = []
    for index, line in enumerate(_profile_lines(profile)):
        escaped = escape_markup(line)
        if index == 0 and line == profile.display_name:
            escaped = f"<strong>{escaped}</strong>"
        parts.append(escaped)

    block = "<br/>".join(parts)
    if image is not None:
        block += f"<br/>{_image_markup(image, config.signature_image_width)}"

    return f"<div>{block}</div>" if block else ""


def render_profile_text(profile: Optional[SenderProfile]) -> str:
    if profile is None:
        return ""
    return "\n".join(_profile_lines(profile))


def compose(
    opening: str = "",
    recipient_name: str = "",
    body: str = "",
    closing: str = "",
    profile: Optional[SenderProfile] = None,
    resolved_image: Optional[ImagePayload] = None,
    config: Optional[ComposerConfig] = None,
) -> ComposedDocument:
    """Compose the markup and plain-text renderings of one message."""
    config = config or _DEFAULT_CONFIG

    opening = opening or ""
    body = body or ""
    closing = closing or ""

    greeting = ensure_trailing_comma(build_greeting(opening, recipient_name))
    sign_off = ensure_trailing_comma(closing) if closing.strip() else ""

    html_sections = []
    if greeting:
        html_sections.append(f"<p>{to_markup_lines(greeting)}</p>")
    if body.strip():
        html_sections.append(f"<div>{to_markup_lines(body)}</div>")
    if sign_off:
        html_sections.append(
            f'<p style="{CLOSING_STYLE}">{to_markup_lines(sign_off)}</p>'
        )
    profile_html = render_profile(profile, resolved_image, config)
    if profile_html:
        html_sections.append(profile_html)

    container_style = f"font-family:{config.font_family}; color:{config.text_color};"
    html = f'<div style="{container_style}">{"".join(html_sections)}</div>'

    plain_sections = [greeting, body, sign_off, render_profile_text(profile)]
    plain = "\n\n".join(
        section for section in plain_sections if section and section.strip()
    )

    return ComposedDocument(html=html, plain=plain)
