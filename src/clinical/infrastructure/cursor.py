"""
Opaque pagination cursor.

A cursor names the last item a page returned as ``(pk, sk)``. On the wire it
is ``base64url(json) + "." + base64url(hmac)``, unpadded, so clients cannot
forge a position outside the partition they were listing.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Optional

from shared.exceptions import MalformedKeyError

from clinical.infrastructure.keys import parse_note_pk, parse_note_sk

_TAG_BYTES = 16


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> Optional[bytes]:
    try:
        raw = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
    except (binascii.Error, ValueError):
        return None
    # reject alternate spellings of the same bytes
    if _b64encode(raw) != text:
        return None
    return raw


def _sign(payload: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload.encode("ascii"), hashlib.sha256).digest()
    return _b64encode(digest[:_TAG_BYTES])


@dataclass(frozen=True, slots=True)
class Cursor:
    pk: str
    sk: str

    def encode(self, secret: str) -> str:
        body = json.dumps({"pk": self.pk, "sk": self.sk}, separators=(",", ":"), ensure_ascii=False)
        payload = _b64encode(body.encode("utf-8"))
        return f"{payload}.{_sign(payload, secret)}"

    @classmethod
    def decode(cls, token: str, secret: str, partition_key: Optional[str] = None) -> Optional[Cursor]:
        """
        Validate and decode a cursor token.

        Returns None for anything that is not a cursor this service issued for
        a note partition (and for ``partition_key``, when given). Never raises.
        """
        if not isinstance(token, str) or token.count(".") != 1:
            return None
        payload, tag = token.split(".")
        if not payload or not tag or _b64decode(tag) is None:
            return None
        if not hmac.compare_digest(tag, _sign(payload, secret)):
            return None

        raw = _b64decode(payload)
        if raw is None:
            return None
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        pk, sk = data.get("pk"), data.get("sk")
        if not isinstance(pk, str) or not isinstance(sk, str):
            return None

        try:
            parse_note_pk(pk)
            parse_note_sk(sk)
        except MalformedKeyError:
            return None
        if partition_key is not None and pk != partition_key:
            return None
        return cls(pk=pk, sk=sk)
