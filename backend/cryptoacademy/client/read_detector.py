from __future__ import annotations

import asyncio
import logging
from typing import Callable

from cryptoacademy.client.page import PageScope
from cryptoacademy.client.progress_store import ProgressRefreshFailed, ProgressStore

logger = logging.getLogger(__name__)

READ_COMPLETE_PERCENT = 95.0


def scroll_percent(scroll_top: float, scroll_height: float, client_height: float) -> float:
    scrollable = float(scroll_height) - float(client_height)
    if scrollable <= 0:
        # the whole page fits in the viewport
        return 100.0
    pct = float(scroll_top) / scrollable * 100.0
    return max(0.0, min(100.0, pct))


class ReadCompletionDetector:
    """Marks a topic page as read once the learner scrolls past the threshold.

    At most one completion call is in flight per page visit. ``is_fully_read`` is
    only set after the server accepted the update; a failed write leaves it unset so
    the next scroll past the threshold tries again. When the write succeeds but the
    refetch fails the page still counts as read and only the refetch is retried.
    """

    def __init__(
        self,
        store: ProgressStore,
        scope: PageScope,
        *,
        module_id: int,
        section_id: str,
        threshold: float = READ_COMPLETE_PERCENT,
        on_complete: Callable[[], None] | None = None,
    ):
        self.store = store
        self.scope = scope
        self.module_id = int(module_id)
        self.section_id = section_id
        self.threshold = float(threshold)
        self.on_complete = on_complete

        self.progress = 0.0
        self.is_fully_read = False
        self._in_flight: asyncio.Task | None = None

    def on_scroll(self, scroll_top: float, scroll_height: float, client_height: float) -> asyncio.Task | None:
        self.progress = scroll_percent(scroll_top, scroll_height, client_height)
        if self.progress <= self.threshold:
            return None
        if self.is_fully_read or self._in_flight is not None or self.scope.closed:
            return None
        self._in_flight = self.scope.spawn(self._complete())
        return self._in_flight

    async def _complete(self) -> None:
        saved_but_stale = False
        try:
            await self.store.update_progress(self.module_id, self.section_id, True)
        except asyncio.CancelledError:
            raise
        except ProgressRefreshFailed:
            # the server has the completion; only the local list is behind
            saved_but_stale = True
        except Exception as e:
            logger.warning("read completion failed module=%s section=%s: %s", self.module_id, self.section_id, e)
            return
        finally:
            self._in_flight = None

        self.is_fully_read = True
        if self.on_complete is not None:
            self.on_complete()

        if saved_but_stale:
            try:
                await self.store.refresh()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("progress refresh retry failed module=%s section=%s: %s", self.module_id, self.section_id, e)
