"""Atomically swappable cluster-client handle.

Readers call `current()` without locking and get an immutable `ClientHandle`; a switch
builds a brand-new handle and replaces the reference in one assignment. A reader therefore
sees either the old handle or the new one, never a mix.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class ClientHandle:
    version: int
    context_name: Optional[str]
    client: Any


class ActiveClient:
    def __init__(self, client: Any, context_name: Optional[str] = None) -> None:
        self._publish_lock = threading.Lock()
        self._handle = ClientHandle(version=1, context_name=context_name, client=client)

    def current(self) -> ClientHandle:
        return self._handle

    def publish(self, client: Any, context_name: Optional[str]) -> ClientHandle:
        with self._publish_lock:
            handle = ClientHandle(version=self._handle.version + 1, context_name=context_name, client=client)
            self._handle = handle
            return handle
