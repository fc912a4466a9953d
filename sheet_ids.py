import random
import string
import time
from datetime import datetime, timezone
from typing import Iterable, Optional

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def now_iso() -> str:
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


class IdGenerator:
    """Issues row ids of the form <ms-base36>-<6 random base36 chars>.

    Every id handed out or registered is remembered, so an id is never
    reissued in the session, even after its row is deleted.
    """

    def __init__(self, seed: Optional[int] = None, clock=None):
        self._rng = random.Random(seed)
        self._clock = clock or time.time
        self._issued: set[str] = set()

    def register(self, ids: Iterable[str]) -> None:
        for row_id in ids:
            if row_id:
                self._issued.add(str(row_id))

    def new_id(self) -> str:
        while True:
            stamp = _to_base36(int(self._clock() * 1000))
            suffix = "".join(self._rng.choice(_BASE36) for _ in range(6))
            candidate = f"{stamp}-{suffix}"
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate

    def __contains__(self, row_id):
        return row_id in self._issued
