"""Agregador de routers de la API."""
from fastapi import APIRouter
from hackathon_api.api.routers import (
    auth,
    blog,
    feature_flags,
    guestbook,
    hackboard,
    health,
    note,
    note_types,
    qstash,
    showcase,
    team,
)

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(note.router)
api_router.include_router(note_types.router)
api_router.include_router(blog.router)
api_router.include_router(feature_flags.router)
api_router.include_router(qstash.router)
api_router.include_router(guestbook.router)
api_router.include_router(hackboard.router)
api_router.include_router(team.router)
api_router.include_router(showcase.router)
