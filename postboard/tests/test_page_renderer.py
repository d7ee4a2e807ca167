"""Tests for listing page rendering."""

import base64

import pytest

from postboard.models.post import Post
from postboard.services.page_renderer import (
    PLACEHOLDER,
    PageRenderer,
    format_publish_date,
    load_page_shell,
    sniff_image_type,
)

SHELL = "<html><body>{{ BLOGS }}</body></html>"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


def _post(**kwargs) -> Post:
    defaults = {"id": 1, "body": "hello", "user_name": "alice", "publish_date": 0}
    defaults.update(kwargs)
    return Post(**defaults)


def test_empty_listing_replaces_placeholder():
    assert PageRenderer(SHELL).render([]) == "<html><body></body></html>"


def test_avatar_is_inlined_as_data_uri():
    page = PageRenderer(SHELL).render([_post(avatar=PNG)])
    encoded = base64.b64encode(PNG).decode("ascii")
    assert f'class="avatar" src="data:image/png;base64,{encoded}"' in page
    assert "blog-image" not in page


def test_blog_image_is_inlined():
    page = PageRenderer(SHELL).render([_post(image=b"\xff\xd8\xff\xe0rest")])
    assert 'class="blog-image" src="data:image/jpeg;base64,' in page


def test_zero_byte_avatar_renders_like_no_avatar():
    renderer = PageRenderer(SHELL)
    # Post validation keeps b"" as-is, so this exercises the renderer's own check
    assert renderer.render([_post(avatar=b"")]) == renderer.render([_post(avatar=None)])
    assert "<img" not in renderer.render([_post(avatar=b"")])


def test_text_is_escaped():
    page = PageRenderer(SHELL).render(
        [_post(body="<script>alert(1)</script>", user_name="a&b")]
    )
    assert "<script>" not in page
    assert "&lt;script&gt;" in page
    assert "a&amp;b" in page


def test_posts_keep_listing_order():
    page = PageRenderer(SHELL).render(
        [_post(id=1, body="first"), _post(id=2, body="second"), _post(id=3, body="third")]
    )
    assert page.index("first") < page.index("second") < page.index("third")


def test_publish_date_rendered_as_utc_instant():
    assert format_publish_date(0) == "1970-01-01 00:00:00 UTC"
    assert format_publish_date(1_760_000_000_123) == "2025-10-09 08:53:20 UTC"
    assert format_publish_date(None) == ""

    page = PageRenderer(SHELL).render([_post(publish_date=0)])
    assert "1970-01-01 00:00:00 UTC" in page


def test_notice_rendered_above_posts():
    page = PageRenderer(SHELL).render([_post()], notice="Avatar <failed>")
    assert page.index("Avatar &lt;failed&gt;") < page.index("hello")


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (PNG, "image/png"),
        (b"\xff\xd8\xff\xdb", "image/jpeg"),
        (b"GIF89a...", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"<svg xmlns='http://www.w3.org/2000/svg'/>", "image/svg+xml"),
        (b"<?xml version='1.0'?>\n<svg xmlns='http://www.w3.org/2000/svg'/>", "image/svg+xml"),
        (b"<?xml version='1.0'?>\n<note>not an image</note>", "application/octet-stream"),
        (b"\x00\x01\x02", "application/octet-stream"),
    ],
)
def test_sniff_image_type(data, expected):
    assert sniff_image_type(data) == expected


def test_shell_without_placeholder_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        PageRenderer("<html></html>")

    shell = tmp_path / "shell.html"
    shell.write_text("<html></html>", encoding="utf-8")
    with pytest.raises(ValueError):
        load_page_shell(shell)


def test_bundled_shell_has_placeholder_and_form():
    shell = load_page_shell()
    assert PLACEHOLDER in shell
    assert 'enctype="multipart/form-data"' in shell
    for name in ("body", "image", "user_name", "avatar"):
        assert f'name="{name}"' in shell
