# tsexport/session.py
from __future__ import annotations

import asyncio
import functools
import logging
import os
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .catalog import CatalogItem
from .container import ContainerChannel, ContainerFile, save
from .exceptions import AlreadyExists, InvalidState, IoFailure
from .layout import build_layout
from .units import file_name, to_sample_count
from .writer import write_requests

logger = logging.getLogger(__name__)


class SessionState(Enum):
    UNCONFIGURED = "unconfigured"  # No context yet
    CONFIGURED = "configured"      # Context set, no file
    OPEN = "open"                  # Skeleton on disk, handle live
    FAILED = "failed"              # I/O failure, only close is legal
    CLOSED = "closed"              # Handle released


@dataclass
class OpenSession:
    """Everything that lives from ``open`` until ``close``."""
    path: str
    file_begin: datetime
    sample_period: timedelta
    total_length: int
    channels: dict[tuple, ContainerChannel]
    container_file: ContainerFile = field(repr=False)


class DataWriter:
    """
    Writes one container file per session.

    Lifecycle: set_context -> open -> write (repeatable) -> close.

    The ``*_async`` variants run the same operations on a single worker
    thread owned by the writer, so calls stay serialized and the event loop
    is never blocked by file I/O.
    """

    def __init__(self):
        self._state = SessionState.UNCONFIGURED
        self._context = None
        self._session = None
        self._logger = logger
        self._executor = None

    @property
    def state(self):
        return self._state

    @property
    def file_path(self):
        return None if self._session is None else self._session.path

    # ============ Lifecycle ============

    def set_context(self, context):
        if self._state not in (SessionState.UNCONFIGURED, SessionState.CONFIGURED):
            raise InvalidState("set context", self._state)

        self._context = context
        self._logger = context.logger or logger
        self._state = SessionState.CONFIGURED
        return self

    def open(self, file_begin, file_period, sample_period, catalog_items, cancel=None):
        """
        Create the file skeleton for ``catalog_items`` and keep it open for writing.

        Args:
            file_begin: Timestamp of the first sample (naive values are UTC)
            file_period: Time span covered by the file
            sample_period: Time between two samples
            catalog_items: Ordered catalog items, decides group and channel order
            cancel: Optional cancellation signal with ``is_set()``
        """
        if self._state != SessionState.CONFIGURED:
            raise InvalidState("open", self._state)

        catalog_items = list(catalog_items)
        for catalog_item in catalog_items:
            if not isinstance(catalog_item, CatalogItem):
                raise TypeError(f"Expected CatalogItem, got {type(catalog_item).__name__}")

        settings = self._context.settings
        path = os.path.join(self._context.target_directory, file_name(file_begin, sample_period))

        if os.path.exists(path):
            raise AlreadyExists(path)

        # built entirely in memory, nothing on disk before this succeeds
        layout = build_layout(
            file_begin,
            file_period,
            sample_period,
            catalog_items,
            system_name=settings.system_name,
            property_mode=settings.property_mode,
            size_limit=settings.size_limit,
            cancel=cancel,
        )

        try:
            save(layout.header, path, chunk_size=settings.chunk_size, compression=settings.compression)
            container_file = ContainerFile.open_editable(path)
        except IoFailure:
            self._state = SessionState.FAILED
            raise

        self._session = OpenSession(
            path=path,
            file_begin=file_begin,
            sample_period=sample_period,
            total_length=layout.total_length,
            channels=layout.channels,
            container_file=container_file,
        )
        self._state = SessionState.OPEN
        self._logger.info("Opened %s with %d channel(s) of %d samples",
                          path, len(layout.channels), layout.total_length)
        return self

    def write(self, file_offset, requests, progress=None, cancel=None):
        """
        Write sample arrays starting at ``file_offset``.

        Args:
            file_offset: Offset from the file begin, a multiple of the sample period
            requests: WriteRequests, any subset of the opened catalog items in any order
            progress: Optional callable receiving the fraction of catalog groups done
            cancel: Optional cancellation signal with ``is_set()``
        """
        if self._state != SessionState.OPEN:
            raise InvalidState("write", self._state)

        session = self._session
        start = to_sample_count(file_offset, session.sample_period)

        try:
            return write_requests(
                session.container_file,
                session.channels,
                start,
                session.total_length,
                requests,
                progress=progress,
                cancel=cancel,
            )
        except IoFailure:
            self._state = SessionState.FAILED
            self._logger.error("Write to %s failed, session can only be closed", session.path)
            raise

    def close(self):
        try:
            self._release()
        finally:
            self._shutdown_worker()
        return self

    def _release(self):
        if self._state == SessionState.CLOSED:
            raise InvalidState("close", self._state)

        if self._session is None:
            if self._state != SessionState.FAILED:
                warnings.warn("Closing a writer that was never opened", UserWarning)
        else:
            self._session.container_file.dispose()
            self._logger.info("Closed %s", self._session.path)

        self._session = None
        self._state = SessionState.CLOSED

    # ============ Worker ============

    def _worker(self):
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tsexport-writer")
        return self._executor

    def _shutdown_worker(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    async def _run(self, function, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._worker(), functools.partial(function, *args, **kwargs))

    async def open_async(self, file_begin, file_period, sample_period, catalog_items, cancel=None):
        return await self._run(self.open, file_begin, file_period, sample_period,
                               catalog_items, cancel=cancel)

    async def write_async(self, file_offset, requests, progress=None, cancel=None):
        return await self._run(self.write, file_offset, requests, progress=progress, cancel=cancel)

    async def close_async(self):
        try:
            await self._run(self._release)
        finally:
            self._shutdown_worker()
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._state in (SessionState.OPEN, SessionState.FAILED):
            self.close()
        else:
            self._shutdown_worker()
