"""
Esquemas Pydantic para notas y tipos de nota.

El frontend habla camelCase (`isPublic`, `noteTypeId`); los modelos aceptan
ambos nombres y se vuelcan con alias para llegar tal cual al repositorio.
"""
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from hackathon_api.api.schemas.base import CamelModel


class NoteCreate(CamelModel):
    # title/content opcionales aquí: el repositorio devuelve el mensaje de error
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []
    is_public: bool = False
    note_type_id: Optional[str] = None
    is_archived: Optional[bool] = None


class NoteUpdate(CamelModel):
    non_nullable: ClassVar[Tuple[str, ...]] = ("is_public", "is_archived")

    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None
    note_type_id: Optional[str] = None
    is_archived: Optional[bool] = None


class NoteTypeCreate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    fields: List[Dict[str, Any]] = []


class NoteTypeUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    fields: Optional[List[Dict[str, Any]]] = None
