"""Ingestion layer.

This package turns untrusted JSON from dashboard clients into bounded,
aligned, typed documents. Nothing past this boundary handles raw input.
"""

__all__: list[str] = []
