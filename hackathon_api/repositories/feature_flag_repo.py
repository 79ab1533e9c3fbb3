"""Feature flags: un único mapa JSON (id -> flag) bajo la clave `feature_flags`."""
import copy
import logging
from typing import Any, Dict, List

from redis import Redis

from hackathon_api.core.exceptions import NotFound
from hackathon_api.core.time import now_iso, touch_iso
from hackathon_api.infrastructure.db.codec import decode, encode
from hackathon_api.services.authz import ADMIN_ROLE

FLAGS_KEY = "feature_flags"
IMMUTABLE_FIELDS = ("id", "createdAt")

_log = logging.getLogger("hackathon.feature_flags")

DEFAULT_FEATURE_FLAGS: List[Dict[str, Any]] = [
    {
        "id": "upstash_qstash",
        "name": "Upstash QStash Task Queue",
        "description": "Asynchronous task processing with Upstash QStash for welcome emails, scheduled blog posts, and background jobs",
        "enabled": True,
        "category": "integration",
        "status": "active",
        "adminOnly": False,
    },
    {
        "id": "upstash_vector_search",
        "name": "Upstash Vector (AI-Powered Search)",
        "description": "Semantic search for notes using AI-generated vector embeddings. Search with natural language questions.",
        "enabled": False,
        "category": "ai",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "upstash_workflow",
        "name": "Upstash Workflow (Durable Orchestration)",
        "description": "Multi-step user onboarding workflows with state management and retry handling",
        "enabled": False,
        "category": "integration",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "upstash_search",
        "name": "Upstash Search (Full-Text Search)",
        "description": "Fast, typo-tolerant full-text search across blog posts and notes with instant results",
        "enabled": False,
        "category": "core",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "netlify_identity",
        "name": "Netlify Identity Integration",
        "description": "Social logins (Google, GitHub) and secure password recovery flows with managed user database",
        "enabled": False,
        "category": "integration",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "netlify_blobs",
        "name": "Netlify Blobs Image Uploads",
        "description": "File upload handling for user avatars and blog post images via Netlify Blobs",
        "enabled": False,
        "category": "integration",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "sentry_monitoring",
        "name": "Sentry Error & Performance Monitoring",
        "description": "Production-grade error tracking and performance monitoring with Web Vitals",
        "enabled": False,
        "category": "core",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "web3_token_gating",
        "name": "Web3 Token-Gated Content",
        "description": "Premium content access requiring specific NFTs or token holdings via Nodely.io",
        "enabled": False,
        "category": "experimental",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "elevenlabs_tts",
        "name": "ElevenLabs Text-to-Speech",
        "description": "AI voice generation for article narration and audio notes with voice selection",
        "enabled": False,
        "category": "ai",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "tavus_personalized_video",
        "name": "Tavus Personalized Video",
        "description": "AI-generated personalized welcome videos and milestone celebrations",
        "enabled": False,
        "category": "ai",
        "status": "shipping_soon",
        "adminOnly": False,
    },
    {
        "id": "advanced_analytics",
        "name": "Advanced Analytics Dashboard",
        "description": "Detailed usage analytics and user behavior insights for administrators",
        "enabled": False,
        "category": "core",
        "status": "shipping_soon",
        "adminOnly": True,
    },
    {
        "id": "api_rate_limiting",
        "name": "Advanced API Rate Limiting",
        "description": "Configurable rate limiting per user role and endpoint with burst allowances",
        "enabled": False,
        "category": "core",
        "status": "shipping_soon",
        "adminOnly": True,
    },
]


def _defaults_map() -> Dict[str, Dict[str, Any]]:
    now = now_iso()
    out: Dict[str, Dict[str, Any]] = {}
    for flag in copy.deepcopy(DEFAULT_FEATURE_FLAGS):
        flag["createdAt"] = now
        flag["updatedAt"] = now
        out[flag["id"]] = flag
    return out


def _load_map(store: Redis) -> Dict[str, Dict[str, Any]]:
    flags = decode(store.get(FLAGS_KEY), key=FLAGS_KEY) or {}
    # Entradas que no sean objeto se descartan
    return {k: v for k, v in flags.items() if isinstance(v, dict)}


def initialize(store: Redis) -> bool:
    """Siembra los defaults sólo si la clave no existe. True si sembró."""
    seeded = bool(store.set(FLAGS_KEY, encode(_defaults_map()), nx=True))
    if seeded:
        _log.info("Feature flags inicializados")
    return seeded


def list_flags(store: Redis, role: str = "user") -> List[Dict[str, Any]]:
    """Admin ve todos; el resto no ve los `adminOnly`."""
    flags = list(_load_map(store).values())
    if role == ADMIN_ROLE:
        return flags
    return [f for f in flags if not f.get("adminOnly")]


def is_enabled(store: Redis, flag_id: str) -> bool:
    flag = _load_map(store).get(flag_id)
    return bool(flag and flag.get("enabled"))


def update_flag(store: Redis, flag_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    flags = _load_map(store)
    current = flags.get(flag_id)
    if not current:
        raise NotFound("Feature flag not found")
    changes = {k: v for k, v in patch.items() if k not in IMMUTABLE_FIELDS}
    flags[flag_id] = {
        **current,
        **changes,
        "updatedAt": touch_iso(current.get("updatedAt")),
    }
    store.set(FLAGS_KEY, encode(flags))
    return flags[flag_id]


def reset_flags(store: Redis) -> List[Dict[str, Any]]:
    """Reescribe el mapa completo con los defaults y timestamps frescos."""
    flags = _defaults_map()
    store.set(FLAGS_KEY, encode(flags))
    return list(flags.values())
