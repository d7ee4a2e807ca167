"""Post data models."""

from pydantic import BaseModel


class SubmittedForm(BaseModel):
    """A complete blog submission decoded from the multipart form.

    Only built once ``body``, ``user_name`` and ``avatar`` have all been
    seen; an incomplete form is represented by ``None``, never by a
    partially-filled instance.
    """

    body: str
    image: bytes | None = None
    user_name: str
    avatar_url: str


class Post(BaseModel):
    """A persisted blog post.

    ``id`` and ``publish_date`` (epoch milliseconds) are assigned by the
    store on insert.  Image fields hold raw bytes; ``None`` means no image.
    """

    model_config = {"frozen": True}

    id: int | None = None
    body: str
    image: bytes | None = None
    publish_date: int | None = None
    user_name: str
    avatar: bytes | None = None
