"""
Esquemas Pydantic para operaciones de autenticación y perfil.

- Mantiene las validaciones y normalizaciones (p. ej. email en minúsculas).
- Modelos pensados para separar la capa API de la lógica de negocio.
"""
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class RegisterPayload(BaseModel):
    """Payload de registro local.

    - `username`: 3–30 caracteres alfanuméricos, `_` o `-`.
    - `password`: mínimo 8, con mayúscula, minúscula y dígito.
    """

    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=8)

    @field_validator("username")
    @classmethod
    def _check_username(cls, v: str) -> str:
        if not USERNAME_RE.match(v):
            raise ValueError("Username can only contain letters, numbers, underscores and hyphens")
        return v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: EmailStr) -> str:
        return str(v).lower()

    @field_validator("password")
    @classmethod
    def _check_password(cls, v: str) -> str:
        if not (re.search(r"[a-z]", v) and re.search(r"[A-Z]", v) and re.search(r"\d", v)):
            raise ValueError("Password must contain at least one uppercase letter, one lowercase letter, and one number")
        return v


class LoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: EmailStr) -> str:
        return str(v).lower()


class ProfileUpdate(BaseModel):
    """
    Actualización parcial del perfil.
    Nota: sin defaults en preferences para no sobreescribir accidentalmente.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    preferences: Optional[Dict[str, Any]] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: Optional[EmailStr]) -> Optional[str]:
        return str(v).lower() if v else None
