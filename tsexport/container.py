# tsexport/container.py
"""
HDF5-backed channel container.

The container is described in memory by a ContainerHeader (groups holding
channels, fields binding channels to a shared time axis), persisted once with
:func:`save` and then reopened with :meth:`ContainerFile.open_editable` to
write sample payload in place.

On disk every group is a direct child of the root and every channel a float
dataset inside its group. Group and dataset attributes are node properties
only. Container bookkeeping (fields, titles, display names, calibration and
axis descriptors) is one JSON document in the root ``layout`` attribute; the
root node never carries properties, so the two cannot collide.
"""
from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime

import h5py
import numpy as np

from .exceptions import IoFailure, InvalidLayout, InvalidRequest

logger = logging.getLogger(__name__)

FORMAT_NAME = "tsexport"
FORMAT_VERSION = 2

# Several channels sharing one equidistant time axis
FIELD_MULTIPLE_Y_SINGLE_EQUIDISTANT_TIME = "multiple_y_single_equidistant_time"


def node_name(name: str) -> str:
    """HDF5 link name for a channel name; reversible, never contains ``/``."""
    escaped = name.replace("%", "%25").replace("/", "%2F")
    return "%2E" if escaped == "." else escaped


@dataclass
class Calibration:
    factor: float = 1.0
    offset: float = 0.0
    unit: str = ""


@dataclass
class AxisScaling:
    dx: float
    unit: str = "s"


@dataclass
class TriggerTime:
    time: datetime


@dataclass
class ContainerChannel:
    name: str
    length: int
    calibration: Calibration = field(default_factory=Calibration)
    x_axis_scaling: AxisScaling | None = None
    trigger_time: TriggerTime | None = None
    dtype: np.dtype = field(default_factory=lambda: np.dtype(np.float64))
    properties: list[tuple[str, str]] = field(default_factory=list)

    # Set when added to a group / field
    group: str | None = field(default=None, compare=False)
    field_index: int = field(default=0, compare=False)
    component_index: int = field(default=0, compare=False)

    @property
    def node_name(self) -> str:
        return node_name(self.name)

    @property
    def path(self) -> str:
        if self.group is None:
            raise InvalidLayout(f"Channel '{self.name}' does not belong to a group")
        return f"/{self.group}/{self.node_name}"


@dataclass
class ContainerField:
    kind: str = FIELD_MULTIPLE_Y_SINGLE_EQUIDISTANT_TIME
    components: list[ContainerChannel] = field(default_factory=list)

    def add_component(self, name, dtype, length, calibration, x_axis_scaling, trigger_time):
        channel = ContainerChannel(
            name=name,
            length=int(length),
            calibration=calibration,
            x_axis_scaling=x_axis_scaling,
            trigger_time=trigger_time,
            dtype=np.dtype(dtype),
        )
        channel.component_index = len(self.components)
        self.components.append(channel)
        return channel


@dataclass
class ContainerGroup:
    name: str
    properties: list[tuple[str, str]] = field(default_factory=list)
    channels: list[ContainerChannel] = field(default_factory=list)
    title: str | None = None

    def add_channel(self, channel):
        for existing in self.channels:
            if existing.name == channel.name:
                raise InvalidLayout(f"Channel '{channel.name}' already exists in group '{self.name}'")
        if not channel.name:
            raise InvalidLayout(f"Invalid channel name '{channel.name}'")
        channel.group = self.name
        self.channels.append(channel)
        return channel

    def __getitem__(self, key):
        if isinstance(key, str):
            for channel in self.channels:
                if channel.name == key:
                    return channel
            raise KeyError(f"Channel '{key}' not found")
        return self.channels[key]

    def __len__(self):
        return len(self.channels)


@dataclass
class ContainerHeader:
    groups: list[ContainerGroup] = field(default_factory=list)
    fields: list[ContainerField] = field(default_factory=list)

    def add_group(self, name, title=None):
        if not name or "/" in name or name == ".":
            raise InvalidLayout(f"Invalid group name '{name}'")
        for existing in self.groups:
            if existing.name == name:
                raise InvalidLayout(f"Group '{name}' already exists")
        group = ContainerGroup(name=name, title=title)
        self.groups.append(group)
        return group

    def add_field(self, container_field):
        index = len(self.fields)
        for component in container_field.components:
            component.field_index = index
        self.fields.append(container_field)
        return container_field

    def __getitem__(self, key):
        if isinstance(key, str):
            for group in self.groups:
                if group.name == key:
                    return group
            raise KeyError(f"Group '{key}' not found")
        return self.groups[key]

    @property
    def channels(self):
        return [channel for group in self.groups for channel in group.channels]


# ============ Writing ============

def _write_properties(node, properties):
    for key, value in properties:
        node.attrs[key] = value


def _channel_layout(channel):
    scaling = channel.x_axis_scaling
    return {
        "node": channel.node_name,
        "name": channel.name,
        "field_index": channel.field_index,
        "component_index": channel.component_index,
        "calibration": {
            "factor": channel.calibration.factor,
            "offset": channel.calibration.offset,
            "unit": channel.calibration.unit,
        },
        "x_axis_scaling": None if scaling is None else {"dx": scaling.dx, "unit": scaling.unit},
        "trigger_time": None if channel.trigger_time is None else channel.trigger_time.time.isoformat(),
    }


def _header_layout(header):
    return {
        "fields": [f.kind for f in header.fields],
        "groups": [
            {
                "name": group.name,
                "title": group.title,
                "channels": [_channel_layout(channel) for channel in group.channels],
            }
            for group in header.groups
        ],
    }


def _create_channel_dataset(h5group, channel, chunk_size, compression):
    options = {}
    if channel.length > 0:
        options["chunks"] = (min(chunk_size, channel.length),)
        if compression:
            options["compression"] = compression

    dataset = h5group.create_dataset(
        channel.node_name,
        shape=(channel.length,),
        dtype=channel.dtype,
        fillvalue=np.nan,
        track_order=True,
        **options,
    )
    _write_properties(dataset, channel.properties)


def save(header, path, chunk_size=65536, compression=None):
    """Persist ``header`` as a new file. Never overwrites; removes the file on failure."""
    path = os.fspath(path)

    try:
        h5file = h5py.File(path, "w-", track_order=True)
    except (OSError, ValueError) as exc:
        raise IoFailure(f"Cannot create container file ({exc})", path) from exc

    try:
        with h5file:
            h5file.attrs["format"] = FORMAT_NAME
            h5file.attrs["format_version"] = FORMAT_VERSION
            h5file.attrs["layout"] = json.dumps(_header_layout(header))

            for group in header.groups:
                h5group = h5file.create_group(group.name, track_order=True)
                _write_properties(h5group, group.properties)

                for channel in group.channels:
                    _create_channel_dataset(h5group, channel, chunk_size, compression)
    except (OSError, ValueError) as exc:
        os.remove(path)
        raise IoFailure(f"Cannot write container file ({exc})", path) from exc

    logger.debug("Saved container skeleton with %d group(s) to %s", len(header.groups), path)


# ============ Reading / Editing ============

def _read_properties(node):
    return [
        (key, value.decode() if isinstance(value, bytes) else str(value))
        for key, value in node.attrs.items()
    ]


def _read_channel(group_name, entry, dataset):
    scaling = entry.get("x_axis_scaling")
    trigger_time = entry.get("trigger_time")

    channel = ContainerChannel(
        name=entry["name"],
        length=dataset.shape[0],
        calibration=Calibration(**entry["calibration"]),
        x_axis_scaling=None if scaling is None else AxisScaling(**scaling),
        trigger_time=None if trigger_time is None else TriggerTime(datetime.fromisoformat(trigger_time)),
        dtype=dataset.dtype,
        properties=_read_properties(dataset),
    )
    channel.group = group_name
    channel.field_index = entry["field_index"]
    channel.component_index = entry["component_index"]
    return channel


def _read_header(h5file):
    layout = json.loads(h5file.attrs["layout"])

    header = ContainerHeader()
    header.fields = [ContainerField(kind=kind) for kind in layout["fields"]]

    for group_entry in layout["groups"]:
        h5group = h5file[group_entry["name"]]
        group = ContainerGroup(
            name=group_entry["name"],
            properties=_read_properties(h5group),
            title=group_entry["title"],
        )
        for entry in group_entry["channels"]:
            group.channels.append(_read_channel(group.name, entry, h5group[entry["node"]]))
        header.groups.append(group)

    components = sorted(header.channels, key=lambda c: (c.field_index, c.component_index))
    for channel in components:
        if channel.field_index < len(header.fields):
            header.fields[channel.field_index].components.append(channel)

    return header


class ContainerEditor:
    """Write access to channel payload within one edit transaction."""

    def __init__(self, h5file, path):
        self._h5file = h5file
        self._path = path

    def write_samples(self, channel, start, data):
        data = np.asarray(data, dtype=channel.dtype)
        dataset = self._h5file[channel.path]
        end = start + len(data)

        if start < 0 or end > dataset.shape[0]:
            raise InvalidRequest(
                f"Cannot write samples [{start}, {end}) to channel '{channel.path}' "
                f"of length {dataset.shape[0]}"
            )
        if end == start:
            return

        try:
            dataset[start:end] = data
        except OSError as exc:
            raise IoFailure(f"Cannot write channel '{channel.path}' ({exc})", self._path) from exc


class ContainerFile:
    """An opened container file, read-only or editable."""

    def __init__(self, h5file, path, editable):
        self._h5file = h5file
        self.path = path
        self.editable = editable
        self.header = _read_header(h5file)

    @classmethod
    def _open(cls, path, mode):
        path = os.fspath(path)
        try:
            h5file = h5py.File(path, mode)
        except OSError as exc:
            raise IoFailure(f"Cannot open container file ({exc})", path) from exc

        try:
            return cls(h5file, path, editable=(mode == "r+"))
        except (OSError, KeyError, ValueError) as exc:
            h5file.close()
            raise IoFailure(f"Cannot read container header ({exc})", path) from exc

    @classmethod
    def open(cls, path):
        return cls._open(path, "r")

    @classmethod
    def open_editable(cls, path):
        return cls._open(path, "r+")

    @property
    def closed(self):
        return self._h5file is None

    @property
    def fields(self):
        return self.header.fields

    @property
    def groups(self):
        return self.header.groups

    @contextmanager
    def edit(self):
        """Edit transaction; the file is flushed when the block exits."""
        if self._h5file is None:
            raise IoFailure("Container file is closed", self.path)
        if not self.editable:
            raise IoFailure("Container file is not opened for editing", self.path)

        try:
            yield ContainerEditor(self._h5file, self.path)
        finally:
            self._h5file.flush()

    def read_samples(self, channel):
        if self._h5file is None:
            raise IoFailure("Container file is closed", self.path)
        return self._h5file[channel.path][()]

    def dispose(self):
        if self._h5file is not None:
            self._h5file.close()
            self._h5file = None

    close = dispose

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
