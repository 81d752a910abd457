"""Opaque identifiers for signals: 3 letters then 6 letters/digits."""

from __future__ import annotations

import random
import string

_LEADING = string.ascii_lowercase
_TRAILING = string.ascii_lowercase + string.digits

_rng = random.Random()


def rid(rng: random.Random | None = None) -> str:
    """Generate an id such as "kqzx7f2a9". Pass rng for reproducible ids."""
    r = rng or _rng
    return "".join(r.choice(_LEADING) for _ in range(3)) + "".join(
        r.choice(_TRAILING) for _ in range(6)
    )
