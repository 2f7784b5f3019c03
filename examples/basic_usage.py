#!/usr/bin/env python3
"""
Basic usage example for tsexport.

Demonstrates:
- Describing catalogs, resources and representations
- Opening a write session for one file period
- Writing sample batches in time order
- Reading the file back for verification
"""

import os
import tempfile
import threading
from datetime import datetime, timedelta

import numpy as np

from tsexport import (
    Catalog,
    CatalogItem,
    ContainerFile,
    DataWriter,
    Representation,
    Resource,
    WriteRequest,
    WriterContext,
)


def build_catalog_items():
    """Two catalogs: a weather mast with two wind series and a turbine with one."""
    mast = Catalog("/WIND/MAST_1", properties={"location": {"lat": 54.0, "lon": 7.0}})
    turbine = Catalog("/WIND/TURBINE_3", properties={"manufacturer": "ACME"})

    wind_speed = Resource("wind_speed", properties={"unit": "m/s"})
    power = Resource("power", properties={"unit": "kW"})

    return [
        CatalogItem(mast, wind_speed, Representation("1_s_mean")),
        CatalogItem(mast, wind_speed, Representation("1_s_max", parameters={"window": "10"})),
        CatalogItem(turbine, power, Representation("1_s_mean")),
    ]


def export(target_directory):
    catalog_items = build_catalog_items()
    begin = datetime(2024, 6, 1)
    sample_period = timedelta(seconds=1)
    cancel = threading.Event()

    with DataWriter() as writer:
        writer.set_context(WriterContext(target_directory, configuration={"compression": "gzip"}))
        writer.open(begin, timedelta(hours=1), sample_period, catalog_items, cancel=cancel)

        # Ten-minute chunks, as a host pipeline would deliver them
        chunk = 600
        for index in range(6):
            requests = [
                WriteRequest(item, np.random.random(chunk) * 20)
                for item in catalog_items
            ]
            writer.write(
                timedelta(seconds=index * chunk),
                requests,
                progress=lambda value: print(f"  chunk {index}: {value:.0%}"),
                cancel=cancel,
            )

        path = writer.file_path

    return path


def inspect(path):
    with ContainerFile.open(path) as container_file:
        for group in container_file.groups:
            print(f"{group.name}: {dict(group.properties)}")
            for channel in group.channels:
                samples = container_file.read_samples(channel)
                print(f"  {channel.name} [{channel.calibration.unit}] "
                      f"{len(samples)} samples, mean={np.nanmean(samples):.2f}")


if __name__ == "__main__":
    directory = tempfile.mkdtemp()
    file_path = export(directory)
    print(f"Wrote {os.path.basename(file_path)}")
    inspect(file_path)
