"""
tsexport - Time-series export to HDF5 channel containers

Writes catalogs of time series into a single self-describing HDF5 file,
incrementally and in time order.
Provides hierarchical organization: Catalog -> Resource -> Representation
"""

from .catalog import Catalog, Resource, Representation, CatalogItem, WriteRequest
from .config import WriterContext, WriterSettings
from .container import ContainerFile
from .session import DataWriter, SessionState
from .exceptions import (
    ExportError,
    AlreadyExists,
    CapacityExceeded,
    InvalidState,
    Cancelled,
    IoFailure,
    InvalidLayout,
    InvalidRequest,
    InvalidCatalogItem,
    ChannelNotFound,
    ConfigurationError,
)

__version__ = "1.0.0"
__author__ = "tsexport Contributors"
__email__ = "info@example.com"

__all__ = [
    'Catalog', 'Resource', 'Representation', 'CatalogItem', 'WriteRequest',
    'WriterContext', 'WriterSettings', 'ContainerFile', 'DataWriter', 'SessionState',
    'ExportError', 'AlreadyExists', 'CapacityExceeded', 'InvalidState', 'Cancelled',
    'IoFailure', 'InvalidLayout', 'InvalidRequest', 'InvalidCatalogItem',
    'ChannelNotFound', 'ConfigurationError',
]
