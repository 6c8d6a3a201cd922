"""Ingestion layer.

This package turns caller input and raw store rows into validated
:class:`pyfleet.models.events.LocationEvent` objects.
"""

__all__: list[str] = []
