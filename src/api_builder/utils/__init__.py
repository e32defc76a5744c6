"""Shared helpers: header maps, serialization, sequencing and observability."""
