"""
Event Bus для событий жизненного цикла расширений.
Подписчики получают события по точному имени или wildcard-паттерну.
"""

from typing import Dict, List, Callable, Any, Optional
from datetime import datetime
from collections import deque
import inspect
import logging
import re

from .constants import EVENT_BUS_MAX_LOG_SIZE

logger = logging.getLogger(__name__)


class EventLogEntry:
    """Запись в логе событий."""
    def __init__(self, event_name: str, data: Dict[str, Any], timestamp: Optional[datetime] = None):
        self.event_name = event_name
        self.data = data
        self.timestamp = timestamp or datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_name": self.event_name,
            "data": self.data,
            "timestamp": self.timestamp.isoformat()
        }


class EventBus:
    """
    In-process шина событий.

    Паттерны подписки:
    - "extension.*" - все события расширений
    - "*" - все события
    - "extension.failed" - точное совпадение

    ```python
    async def on_failed(event_name, data):
        alert(data["namespace"], data["error"])

    await event_bus.subscribe("extension.failed", on_failed)
    await event_bus.emit("extension.failed", {"namespace": "gallery", "error": "..."})
    ```

    Ошибка в обработчике логируется и не прерывает доставку остальным.
    """

    def __init__(self, max_log_size: int = EVENT_BUS_MAX_LOG_SIZE):
        self.subscribers: Dict[str, List[Callable]] = {}
        self.event_log: deque = deque(maxlen=max_log_size)
        self._patterns: Dict[str, re.Pattern] = {}

    async def emit(self, event_name: str, data: Dict[str, Any]):
        logger.debug(f"📢 EVENT EMIT: {event_name} {data}")
        self.event_log.append(EventLogEntry(event_name, data))

        for pattern, handlers in list(self.subscribers.items()):
            if not self._match_pattern(event_name, pattern):
                continue
            for handler in handlers:
                try:
                    if inspect.iscoroutinefunction(handler):
                        await handler(event_name, data)
                    else:
                        handler(event_name, data)
                except Exception as e:
                    logger.error(
                        f"❌ Error in event handler for '{event_name}' (pattern '{pattern}'): {e}",
                        exc_info=True
                    )

    async def subscribe(self, event_pattern: str, handler: Callable):
        self.subscribers.setdefault(event_pattern, []).append(handler)
        logger.debug(f"✅ Subscribed to pattern '{event_pattern}'")

    def get_logs(self, limit: int = 100, event_filter: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Последние записи лога событий.

        Args:
            limit: Максимальное количество записей
            event_filter: Фильтр по имени события (поддерживает wildcards)
        """
        logs = list(self.event_log)
        if event_filter:
            logs = [entry for entry in logs if self._match_pattern(entry.event_name, event_filter)]
        return [entry.to_dict() for entry in logs[-limit:]]

    def clear_log(self):
        self.event_log.clear()

    def _match_pattern(self, event_name: str, pattern: str) -> bool:
        if pattern == "*":
            return True
        if "*" not in pattern:
            return event_name == pattern

        compiled = self._patterns.get(pattern)
        if compiled is None:
            # Экранируем всё кроме *, затем * -> .*
            compiled = re.compile("^" + re.escape(pattern).replace(r"\*", ".*") + "$")
            self._patterns[pattern] = compiled
        return bool(compiled.match(event_name))
