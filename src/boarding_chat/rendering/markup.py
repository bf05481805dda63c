"""
Markup conversion for transcript entries.

Assistant output is markdown from an untrusted model: it is converted to
HTML and then sanitized. User and error text is escaped and never
interpreted as markup.
"""

import html

import markdown
import nh3


MARKDOWN_EXTENSIONS = ["extra", "nl2br", "sane_lists"]

# Tags kept in assistant replies
ASSISTANT_TAGS = {
    "p", "br", "strong", "b", "em", "i", "u", "s", "del", "code", "pre",
    "blockquote", "ul", "ol", "li", "h1", "h2", "h3", "h4", "h5", "h6",
    "a", "hr", "table", "thead", "tbody", "tr", "th", "td", "sup", "sub",
}

ASSISTANT_ATTRIBUTES = {
    "a": {"href", "title"},
    "th": {"align"},
    "td": {"align"},
    "ol": {"start"},
}

# Caller-flagged user markup (photo previews) may also carry inline images
USER_MARKUP_TAGS = {"div", "p", "br", "strong", "em", "span", "img"}

USER_MARKUP_ATTRIBUTES = {
    "img": {"src", "alt", "class", "width", "height"},
    "div": {"class"},
    "span": {"class"},
}

USER_MARKUP_URL_SCHEMES = {"data", "https"}


def sanitize_html(
    markup: str,
    tags: set = ASSISTANT_TAGS,
    attributes: dict = ASSISTANT_ATTRIBUTES,
    url_schemes: set = frozenset({"http", "https", "mailto"}),
) -> str:
    """
    Remove unsafe constructs from an HTML string.

    Script and style elements are dropped together with their content.

    Args:
        markup: HTML to clean
        tags: Allowed tag names
        attributes: Allowed attributes per tag
        url_schemes: Allowed URL schemes in href/src

    Returns:
        Sanitized HTML
    """
    return nh3.clean(
        markup,
        tags=set(tags),
        attributes={tag: set(attrs) for tag, attrs in attributes.items()},
        url_schemes=set(url_schemes),
    )


def render_markdown(text: str) -> str:
    """
    Convert assistant markdown to sanitized HTML.

    Args:
        text: Markdown source

    Returns:
        Safe HTML fragment
    """
    converted = markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
    return sanitize_html(converted)


def render_plain_text(text: str) -> str:
    """
    Render literal text: escaped, with line breaks preserved.

    Args:
        text: Text to display verbatim

    Returns:
        HTML fragment showing exactly the given text
    """
    return html.escape(text).replace("\n", "<br>")


def render_user_markup(markup: str) -> str:
    """
    Render markup a caller explicitly flagged as trusted user content.

    The markup still goes through the sanitizer with a narrow allow-list
    that admits inline images.

    Args:
        markup: HTML built by the application, e.g. a photo preview

    Returns:
        Sanitized HTML
    """
    return sanitize_html(
        markup,
        tags=USER_MARKUP_TAGS,
        attributes=USER_MARKUP_ATTRIBUTES,
        url_schemes=USER_MARKUP_URL_SCHEMES,
    )


def image_preview_markup(data_uri: str, alt: str = "Pet photo") -> str:
    """
    Build the inline preview markup for an uploaded photo.

    Args:
        data_uri: data: URI of the encoded image
        alt: Alternative text

    Returns:
        HTML for an <img> element
    """
    return (
        f'<img class="pet-photo-preview" src="{html.escape(data_uri, quote=True)}" '
        f'alt="{html.escape(alt, quote=True)}">'
    )
