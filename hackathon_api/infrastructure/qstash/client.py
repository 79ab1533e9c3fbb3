"""Cliente HTTP mínimo para Upstash QStash.

- `QStashClient.publish_json` publica un mensaje JSON hacia una URL destino
  (API REST `POST /v2/publish/{destino}`) y devuelve el `messageId`.
- `QStashReceiver.verify` valida la cabecera `Upstash-Signature` (JWT HS256
  firmado con la llave actual o la siguiente) contra el cuerpo crudo recibido.
"""
from __future__ import annotations

import base64
import hashlib
import logging
from typing import Any, Dict, Optional, Sequence

import jwt as pyjwt
import requests

_log = logging.getLogger("hackathon.qstash")


class QStashError(Exception):
    pass


class QStashClient:
    def __init__(self, *, token: Optional[str], base_url: str = "https://qstash.upstash.io", timeout: int = 10) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def publish_json(
        self,
        *,
        url: str,
        body: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        delay: Optional[int] = None,
        not_before: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Publica `body` como JSON. `delay` en segundos, `not_before` en epoch (s).

        Devuelve la respuesta de QStash (incluye `messageId`). Lanza `QStashError`
        ante cualquier falla de red o status no 2xx.
        """
        if not self.token:
            raise QStashError("QSTASH_TOKEN no configurado")

        h = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        # Las cabeceras propias se reenvían al destino con el prefijo Upstash-Forward-
        for k, v in (headers or {}).items():
            h[f"Upstash-Forward-{k}"] = v
        if not_before is not None:
            h["Upstash-Not-Before"] = str(int(not_before))
        elif delay is not None:
            h["Upstash-Delay"] = f"{int(delay)}s"

        try:
            r = requests.post(f"{self.base_url}/v2/publish/{url}", json=body, headers=h, timeout=self.timeout)
            r.raise_for_status()
            data = r.json() if r.content else {}
        except requests.RequestException as e:
            _log.error("Publicación a QStash falló: %s", e)
            raise QStashError(str(e)) from e
        except ValueError as e:
            raise QStashError("Respuesta de QStash no es JSON") from e

        if not isinstance(data, dict) or not data.get("messageId"):
            raise QStashError("Respuesta de QStash sin messageId")
        return data


def _body_hash(body: bytes) -> str:
    digest = hashlib.sha256(body).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class QStashReceiver:
    def __init__(self, *, signing_keys: Sequence[str], clock_tolerance: int = 0) -> None:
        self.signing_keys = [k for k in signing_keys if k]
        self.clock_tolerance = clock_tolerance

    def _verify_with_key(self, key: str, signature: str, body: bytes, url: Optional[str]) -> bool:
        try:
            claims = pyjwt.decode(
                signature,
                key=key,
                algorithms=["HS256"],
                issuer="Upstash",
                leeway=self.clock_tolerance,
                options={"verify_aud": False, "require": ["exp", "nbf", "iss"]},
            )
        except pyjwt.InvalidTokenError:
            return False
        if url is not None and claims.get("sub") != url:
            return False
        return str(claims.get("body", "")).rstrip("=") == _body_hash(body)

    def verify(self, *, signature: Optional[str], body: bytes, url: Optional[str] = None) -> bool:
        """True si la firma es válida con la llave actual o con la siguiente."""
        if not signature or not self.signing_keys:
            return False
        return any(self._verify_with_key(k, signature, body, url) for k in self.signing_keys)
