"""Ingestion adapters for Rx-Triage.

This module contains ingestion adapters that implement the IngestionPort
interface for reading dispensing records from delimited files.
"""

from pathlib import Path

from rxtriage.adapters.ingesters.csv_ingester import CSVIngester
from rxtriage.domain.ports import IngestionPort, UnsupportedSourceError

__all__ = ["CSVIngester", "get_adapter"]


def get_adapter(source: str, **kwargs) -> IngestionPort:
    """Factory function to get the ingestion adapter for a source.

    Parameters:
        source: Source identifier (file path)
        **kwargs: Passed to the adapter constructor (delimiter, max_input_bytes)

    Returns:
        IngestionPort: Adapter instance

    Raises:
        UnsupportedSourceError: If no adapter can handle the source

    Example Usage:
        ```python
        adapter = get_adapter("export.csv", max_input_bytes=10_000_000)
        records = adapter.ingest("export.csv")
        ```
    """
    adapters = [CSVIngester]

    for adapter_class in adapters:
        adapter = adapter_class(**kwargs)
        if adapter.can_ingest(source):
            return adapter

    raise UnsupportedSourceError(
        f"No adapter found for source: {source}. Supported formats: CSV, TSV",
        source=source,
        adapter=None,
    )
