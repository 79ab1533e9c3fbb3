"""Schemas del tablón (hackboard), búsqueda de equipo y showcase.

Los campos obligatorios quedan opcionales aquí; el repositorio devuelve el
mensaje de error que espera el frontend.
"""
from typing import List, Optional

from hackathon_api.api.schemas.base import CamelModel


class HackboardPostCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []


class PostRef(CamelModel):
    post_id: Optional[str] = None


class TeamRequestCreate(CamelModel):
    skills: Optional[List[str]] = None
    description: Optional[str] = None


class ConnectionCreate(CamelModel):
    request_id: Optional[str] = None
    message: Optional[str] = None


class ConnectionUpdate(CamelModel):
    status: Optional[str] = None


class ProjectCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    demo_url: Optional[str] = None
    repo_url: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []


class ProjectUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    demo_url: Optional[str] = None
    repo_url: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None


class ProjectRef(CamelModel):
    project_id: Optional[str] = None


class ResourceCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []
    is_free: bool = False


class ResourceRef(CamelModel):
    resource_id: Optional[str] = None
