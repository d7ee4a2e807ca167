"""Listing page and post submission endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from postboard.models.post import Post
from postboard.services.avatar import AvatarFetchError, fetch_avatar
from postboard.services.form_parser import read_submission
from postboard.services.page_renderer import PageRenderer
from postboard.services.post_store import PostStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["home"])

HOME_PATH = "/home"

# Messages for the ?error= values the submission endpoint redirects with
_ERROR_NOTICES = {
    "avatar": "Could not download your avatar image. Check the URL and try again.",
}


def get_post_store(request: Request) -> PostStore:
    return request.app.state.post_store


def get_page_renderer(request: Request) -> PageRenderer:
    return request.app.state.page_renderer


def _redirect_home(error: str | None = None) -> RedirectResponse:
    url = f"{HOME_PATH}?error={error}" if error else HOME_PATH
    return RedirectResponse(url=url, status_code=303)


@router.get(HOME_PATH, response_class=HTMLResponse)
async def home(
    error: str | None = Query(default=None),
    store: PostStore = Depends(get_post_store),
    renderer: PageRenderer = Depends(get_page_renderer),
):
    """Render every stored post."""
    posts = await store.list_all()
    notice = _ERROR_NOTICES.get(error, "") if error else ""
    return HTMLResponse(content=renderer.render(posts, notice=notice))


@router.post(HOME_PATH)
async def submit_post(
    request: Request,
    store: PostStore = Depends(get_post_store),
):
    """Accept a multipart submission, fetch the avatar and store the post.

    Incomplete forms are dropped silently.  A failed avatar download
    redirects with ``?error=avatar`` and stores nothing.
    """
    data = await read_submission(request)
    if data is None:
        logger.info("Incomplete submission, nothing stored")
        return _redirect_home()

    logger.debug(
        "Got submission from %s (body %d chars, image %s bytes, avatar %s)",
        data.user_name,
        len(data.body),
        len(data.image) if data.image else 0,
        data.avatar_url,
    )

    try:
        avatar = await fetch_avatar(data.avatar_url)
    except AvatarFetchError as e:
        logger.warning("Avatar fetch failed for %s: %s", data.user_name, e.reason)
        return _redirect_home(error="avatar")

    await store.insert(
        Post(
            body=data.body,
            image=data.image,
            user_name=data.user_name,
            avatar=avatar,
        )
    )
    return _redirect_home()
