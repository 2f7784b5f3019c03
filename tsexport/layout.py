# tsexport/layout.py
"""
Container skeleton construction.

Builds the complete, still empty, file structure for a list of catalog items:
a ``Metadata`` group, one group per catalog in first-seen order and one
channel per catalog item, all channels bound to one equidistant time field.
Nothing touches the disk here; see ``tsexport.session`` for persisting.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .capacity import SAMPLE_DTYPE, SIZE_LIMIT, check_capacity
from .catalog import CatalogItem
from .config import DEFAULT_SYSTEM_NAME
from .container import (
    AxisScaling,
    Calibration,
    ContainerChannel,
    ContainerField,
    ContainerHeader,
    FIELD_MULTIPLE_Y_SINGLE_EQUIDISTANT_TIME,
    TriggerTime,
)
from .exceptions import Cancelled, InvalidLayout
from .properties import serialize_properties
from .units import format_file_begin, to_sample_count, to_unit_string, to_utc

logger = logging.getLogger(__name__)

METADATA_GROUP = "Metadata"
TIME_AXIS_UNIT = "s"


@dataclass
class Layout:
    header: ContainerHeader
    total_length: int
    dx: float
    channels: dict[tuple, ContainerChannel] = field(default_factory=dict)


def group_name(catalog_id: str) -> str:
    """Group node name for a catalog id; path-like ids are flattened."""
    return catalog_id.strip("/").replace("/", "_")


def group_by_catalog(catalog_items):
    """Group catalog items by catalog id, keeping first-seen and item order."""
    groups: dict[str, list[CatalogItem]] = {}
    for catalog_item in catalog_items:
        groups.setdefault(catalog_item.catalog.id, []).append(catalog_item)
    return groups


def _check_cancel(cancel, groups_completed):
    if cancel is not None and cancel.is_set():
        raise Cancelled("open", groups_completed)


def build_layout(
    file_begin: datetime,
    file_period: timedelta,
    sample_period: timedelta,
    catalog_items,
    system_name: str = DEFAULT_SYSTEM_NAME,
    property_mode: str = "json",
    size_limit: float = SIZE_LIMIT,
    cancel=None,
) -> Layout:
    total_length = to_sample_count(file_period, sample_period, exact=False)
    dx = sample_period.total_seconds()
    file_begin = to_utc(file_begin)

    header = ContainerHeader()

    metadata = header.add_group(METADATA_GROUP)
    metadata.properties = [
        ("system_name", system_name),
        ("date_time", format_file_begin(file_begin)),
        ("sample_period", to_unit_string(sample_period)),
    ]

    # one global check: every channel shares the same time axis
    check_capacity(total_length, SAMPLE_DTYPE, size_limit)

    time_field = ContainerField(FIELD_MULTIPLE_Y_SINGLE_EQUIDISTANT_TIME)
    layout = Layout(header=header, total_length=total_length, dx=dx)

    for completed, (catalog_id, items) in enumerate(group_by_catalog(catalog_items).items()):
        _check_cancel(cancel, completed)

        catalog = items[0].catalog
        name = group_name(catalog_id)
        if name == METADATA_GROUP:
            raise InvalidLayout(f"Catalog id '{catalog_id}' collides with the '{METADATA_GROUP}' group")
        try:
            group = header.add_group(name, title=catalog_id)
        except InvalidLayout as exc:
            raise InvalidLayout(
                f"Catalog id '{catalog_id}' does not map to a unique group name ({exc})"
            ) from exc

        group.properties = serialize_properties(catalog.properties, property_mode)

        for catalog_item in items:
            if catalog_item.key in layout.channels:
                raise InvalidLayout(f"Duplicate catalog item {catalog_item.key}")

            channel = time_field.add_component(
                catalog_item.display_name,
                SAMPLE_DTYPE,
                total_length,
                Calibration(factor=1.0, offset=0.0, unit=catalog_item.unit),
                AxisScaling(dx=dx, unit=TIME_AXIS_UNIT),
                TriggerTime(file_begin),
            )
            channel.properties = serialize_properties(catalog_item.resource.properties, property_mode)
            group.add_channel(channel)
            layout.channels[catalog_item.key] = channel

        logger.debug("Prepared group '%s' with %d channel(s)", name, len(items))

    header.add_field(time_field)
    return layout
