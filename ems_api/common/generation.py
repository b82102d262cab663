# ems_api/common/generation.py
import threading


class GenerationGuard:
    """
    Per-key generation counter.

    Work on a key runs between ``begin(key)``, which returns the generation
    token, and ``end(key)``. A ``bump(key)`` in between makes
    ``is_current(key, token)`` false, marking the result as stale.

    Only keys with work in flight are tracked; ``end`` drops a key once its
    last piece of work finishes, and a bump with nothing in flight is a no-op.
    Pass ``lock`` to share a lock with the caller so a check and whatever it
    guards can happen atomically.
    """

    def __init__(self, lock=None):
        self._gens = {}
        self._inflight = {}
        self._lock = lock or threading.RLock()

    def __len__(self):
        with self._lock:
            return len(self._inflight)

    def begin(self, key) -> int:
        with self._lock:
            self._inflight[key] = self._inflight.get(key, 0) + 1
            return self._gens.setdefault(key, 0)

    def end(self, key):
        with self._lock:
            left = self._inflight.get(key, 0) - 1
            if left > 0:
                self._inflight[key] = left
            else:
                self._inflight.pop(key, None)
                self._gens.pop(key, None)

    def bump(self, key):
        with self._lock:
            if key in self._gens:
                self._gens[key] += 1

    def is_current(self, key, token: int) -> bool:
        with self._lock:
            return key in self._inflight and self._gens.get(key) == token
