"""Esquemas de posts del blog."""
from typing import List, Literal, Optional

from hackathon_api.api.schemas.base import CamelModel

PostStatus = Literal["published", "draft", "scheduled"]


class BlogPostCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = []
    image_url: Optional[str] = None
    status: Optional[PostStatus] = None


class BlogPostUpdate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    tags: Optional[List[str]] = None
    image_url: Optional[str] = None
    status: Optional[PostStatus] = None
