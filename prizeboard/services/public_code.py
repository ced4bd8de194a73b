"""Deterministic display labels for players.

A public code is cosmetic. It is derived from the player id and a server
salt and must never be accepted as proof of anything.
"""

from __future__ import annotations

import hashlib

DISPLAY_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"

PUBLIC_PREFIX = "PLY-"
PUBLIC_LENGTH = 4


def public_code_for(player_id: str, salt: str) -> str:
    digest = hashlib.sha256(f"{salt}|{player_id}".encode("utf-8")).digest()
    symbols = "".join(DISPLAY_ALPHABET[byte % len(DISPLAY_ALPHABET)] for byte in digest[:PUBLIC_LENGTH])
    return f"{PUBLIC_PREFIX}{symbols}"
