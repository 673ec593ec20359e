"""
multiview_queue.py - Remote-control queue for the multiview feature

Multiview commands are forwarded verbatim. Polling delivers at least once,
so the queue drops any command whose identity (type, timestamp) it has
already accepted.
"""

import logging
from collections import OrderedDict, deque
from typing import Callable, List

from ..models import KioskCommand

logger = logging.getLogger("MultiviewQueue")


class MultiviewCommandQueue:
    def __init__(self, max_pending: int = 100, remember: int = 1000):
        self._pending = deque(maxlen=max_pending)
        self._seen = OrderedDict()
        self._remember = remember
        self._listeners: List[Callable] = []

    def push(self, command: KioskCommand) -> bool:
        """Queue a command. Returns False for a redelivered one."""
        identity = command.identity
        if identity in self._seen:
            logger.info(f"Duplicate multiview command ignored: {identity}")
            return False

        self._seen[identity] = True
        while len(self._seen) > self._remember:
            self._seen.popitem(last=False)

        self._pending.append(command)
        for listener in self._listeners:
            try:
                listener(command)
            except Exception as e:
                logger.error(f"Multiview listener error: {e}")
        return True

    def drain(self) -> List[KioskCommand]:
        """Hand over and forget all pending commands, oldest first."""
        commands = list(self._pending)
        self._pending.clear()
        return commands

    def subscribe(self, listener: Callable):
        """Listener signature: (command: KioskCommand)"""
        self._listeners.append(listener)

    def __len__(self):
        return len(self._pending)
