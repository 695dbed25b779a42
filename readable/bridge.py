"""
Session bridge

Carries one converted document from the upload step to the reader step.
Each browser session owns a single slot, keyed by a random id kept in the
(non-permanent) session cookie. Slot contents live only in process memory,
expire after an idle TTL and are never written to disk.
"""
import os
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from flask import session

from readable.models import Mode

SESSION_KEY = "bridge_id"


@dataclass
class SessionContent:
    mode: Mode
    result: Any
    document: Optional[str] = None  # base64 PDF, kept only when the reader needs to call back
    options: Dict[str, Any] = field(default_factory=dict)
    state: Any = None


class SessionBridge:
    def __init__(self, ttl: int = 3600, max_slots: int = 512, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.max_slots = max_slots
        self._clock = clock
        self._slots: "OrderedDict[str, tuple]" = OrderedDict()
        self._lock = threading.Lock()

    def init_app(self, app) -> None:
        self.ttl = int(app.config.get("BRIDGE_TTL", self.ttl))
        self.max_slots = int(app.config.get("BRIDGE_MAX_SLOTS", self.max_slots))
        app.extensions["session_bridge"] = self

    def _slot_id(self, create: bool) -> Optional[str]:
        slot_id = session.get(SESSION_KEY)
        if not slot_id and create:
            slot_id = os.urandom(16).hex()
            session[SESSION_KEY] = slot_id
        return slot_id

    def _evict(self, now: float) -> None:
        expired = [k for k, (ts, _) in self._slots.items() if now - ts > self.ttl]
        for k in expired:
            del self._slots[k]
        while len(self._slots) > self.max_slots:
            self._slots.popitem(last=False)

    def put(self, content: SessionContent) -> None:
        """Overwrite this session's slot."""
        slot_id = self._slot_id(create=True)
        now = self._clock()
        with self._lock:
            self._slots.pop(slot_id, None)
            self._slots[slot_id] = (now, content)
            self._evict(now)

    def get(self, mode: Optional[Mode] = None) -> Optional[SessionContent]:
        """Return this session's content, or None if absent, expired or for another mode."""
        slot_id = self._slot_id(create=False)
        if not slot_id:
            return None
        now = self._clock()
        with self._lock:
            self._evict(now)
            entry = self._slots.get(slot_id)
            if entry is None:
                return None
            content = entry[1]
            self._slots[slot_id] = (now, content)
            self._slots.move_to_end(slot_id)
        if mode is not None and content.mode != mode:
            return None
        return content

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)
