"""Realtime table-change notifications.

Supabase pushes a notification whenever any row of a subscribed table changes.
The app treats it as a coarse "table changed, re-fetch" signal: registered
callbacks receive the raw payload but are expected to just invalidate their
cached reads.

The async Supabase client runs on its own event loop in a daemon thread,
since Streamlit scripts are synchronous.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from functools import partial

from supabase import acreate_client

logger = logging.getLogger(__name__)


class ChangeFeed:
    def __init__(self, schema="public"):
        self.schema = schema
        self._callbacks = defaultdict(list)
        self._events = {}
        self._thread = None
        self._lock = threading.Lock()

    @property
    def tables(self):
        return list(self._callbacks)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def register(self, table, callback, event="*"):
        """Call ``callback(payload)`` on ``event`` ("*", "INSERT", "UPDATE", "DELETE") in ``table``."""
        with self._lock:
            self._callbacks[table].append(callback)
            # Widen to every event when callers disagree
            previous = self._events.get(table)
            self._events[table] = event if previous in (None, event) else "*"

    def dispatch(self, table, payload=None):
        """Run the callbacks of ``table``; one failing callback does not stop the rest."""
        with self._lock:
            callbacks = list(self._callbacks.get(table, ()))
        for callback in callbacks:
            try:
                callback(payload)
            except Exception:
                logger.exception(f"Change callback for {table} failed")

    def start(self, url, key):
        """Open the realtime connection in the background (idempotent)."""
        if self.running:
            return
        if not url or not key:
            logger.warning("Realtime disabled: Supabase credentials missing")
            return
        self._thread = threading.Thread(
            target=self._run, args=(url, key), name="pelada-realtime", daemon=True
        )
        self._thread.start()

    def _run(self, url, key):
        try:
            asyncio.run(self._listen(url, key))
        except Exception as e:
            logger.error(f"Realtime listener stopped: {e}")

    async def _listen(self, url, key):
        client = await acreate_client(url, key)
        for table in self.tables:
            channel = client.channel(f"{self.schema}:{table}")
            channel.on_postgres_changes(
                self._events.get(table, "*"),
                schema=self.schema,
                table=table,
                callback=partial(self.dispatch, table),
            )
            await channel.subscribe()
            logger.info(f"Subscribed to changes on {table}")
        await asyncio.Event().wait()
