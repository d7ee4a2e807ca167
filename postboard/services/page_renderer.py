"""HTML rendering of the post listing."""

import base64
import html
from datetime import datetime, timezone
from pathlib import Path

from postboard.models.post import Post

PLACEHOLDER = "{{ BLOGS }}"
DEFAULT_SHELL_PATH = Path(__file__).resolve().parent.parent / "templates" / "home.html"

# Leading-byte signatures for the image types browsers commonly render
_IMAGE_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
]


def load_page_shell(path: str | Path | None = None) -> str:
    """Read the page shell, failing if it lacks the ``{{ BLOGS }}`` placeholder."""
    shell_path = Path(path) if path else DEFAULT_SHELL_PATH
    shell = shell_path.read_text(encoding="utf-8")
    if PLACEHOLDER not in shell:
        raise ValueError(f"Page shell {shell_path} has no {PLACEHOLDER} placeholder")
    return shell


def sniff_image_type(data: bytes) -> str:
    """Best-effort MIME type from the leading bytes of an image."""
    for signature, mime in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    head = data.lstrip()[:256]
    if head.startswith(b"<") and b"<svg" in head:
        return "image/svg+xml"
    return "application/octet-stream"


def data_uri(data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{sniff_image_type(data)};base64,{encoded}"


def format_publish_date(millis: int | None) -> str:
    """Render epoch milliseconds as a UTC instant, e.g. ``2026-10-19 08:30:00 UTC``."""
    if millis is None:
        return ""
    dt = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def _image_tag(data: bytes | None, css_class: str, alt: str) -> str:
    if not data:
        return ""
    return f'<img class="{css_class}" src="{data_uri(data)}" alt="{html.escape(alt)}" />'


def render_post(post: Post) -> str:
    """Render one post as an ``<article>`` fragment."""
    user_name = html.escape(post.user_name)
    body = html.escape(post.body).replace("\n", "<br />\n")
    avatar = _image_tag(post.avatar, "avatar", f"{post.user_name}'s avatar")
    image = _image_tag(post.image, "blog-image", "")
    published = format_publish_date(post.publish_date)

    return f"""<article class="post">
<header class="post-header">
{avatar}<span class="user-name">{user_name}</span>
<time class="publish-date">{published}</time>
</header>
<p class="post-body">{body}</p>
{image}</article>
"""


class PageRenderer:
    """Merges rendered posts into the static page shell."""

    def __init__(self, shell: str) -> None:
        if PLACEHOLDER not in shell:
            raise ValueError(f"Page shell has no {PLACEHOLDER} placeholder")
        self._shell = shell

    def render(self, posts: list[Post], notice: str = "") -> str:
        """Return the full listing page with *posts* in the given order.

        *notice* is an optional message shown above the posts.
        """
        fragments = "".join(render_post(post) for post in posts)
        if notice:
            fragments = f'<p class="notice">{html.escape(notice)}</p>\n' + fragments
        return self._shell.replace(PLACEHOLDER, fragments)
