# tsexport/writer.py
"""Incremental sample writer for an open container file."""
from __future__ import annotations

import logging

from .exceptions import Cancelled, ChannelNotFound, InvalidRequest

logger = logging.getLogger(__name__)


def group_requests(requests):
    """Group write requests by catalog id in first-seen order."""
    groups = {}
    for request in requests:
        groups.setdefault(request.catalog_item.catalog.id, []).append(request)
    return groups


def write_requests(container_file, channels, start, total_length, requests,
                   progress=None, cancel=None):
    """
    Write a batch of requests starting at sample index ``start``.

    Each request is resolved to its channel through ``channels`` (catalog
    item key -> channel), so the order of requests within a catalog does not
    matter. All writes share one edit transaction. Cancellation is checked
    before each catalog group; groups already written stay on disk.

    Returns the number of catalog groups written.
    """
    groups = group_requests(requests)

    # resolve and validate everything before the first byte is written
    resolved = []
    for catalog_id, group in groups.items():
        batch = []
        for request in group:
            channel = channels.get(request.catalog_item.key)
            if channel is None:
                raise ChannelNotFound(
                    f"No channel for catalog item {request.catalog_item.key}; "
                    f"it was not part of the opened catalog items"
                )
            end = start + len(request.data)
            if end > total_length:
                raise InvalidRequest(
                    f"Writing {len(request.data)} samples at index {start} exceeds "
                    f"the file length of {total_length} samples"
                )
            batch.append((channel, request.data))
        resolved.append((catalog_id, batch))

    total = len(resolved)
    completed = 0

    with container_file.edit() as editor:
        for catalog_id, batch in resolved:
            if cancel is not None and cancel.is_set():
                logger.warning("Write cancelled after %d of %d catalog group(s)", completed, total)
                raise Cancelled("write", completed)

            for channel, data in batch:
                editor.write_samples(channel, start, data)

            completed += 1
            logger.debug("Wrote %d channel(s) of catalog '%s' at index %d",
                         len(batch), catalog_id, start)

            if progress is not None:
                progress(completed / total)

    return completed
