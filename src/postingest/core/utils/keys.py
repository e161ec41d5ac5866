"""Structural key synthesis for rich-text arrays"""

from uuid import uuid4


def new_key() -> str:
    """Return a 32-char hex key, unique within any practical document."""
    return uuid4().hex


def short_id(length: int = 10) -> str:
    return uuid4().hex[:length]


def is_usable_key(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


class KeyRegistry:
    """Hands out keys unique within one document.

    claim() keeps a caller-supplied key the first time it is seen and
    replaces blank or already-claimed keys with fresh ones. Keys passed as
    ``reserved`` are never produced by fresh(), so a synthesized key cannot
    shadow an input key that is claimed later in the walk.
    """

    def __init__(self, reserved=()):
        self._claimed: set[str] = set()
        self._reserved: set[str] = {k for k in reserved if is_usable_key(k)}

    def __contains__(self, key: str) -> bool:
        return key in self._claimed

    def fresh(self) -> str:
        key = new_key()
        while key in self or key in self._reserved:
            key = new_key()
        self._claimed.add(key)
        return key

    def claim(self, candidate) -> str:
        if is_usable_key(candidate) and candidate not in self:
            self._claimed.add(candidate)
            return candidate
        return self.fresh()
