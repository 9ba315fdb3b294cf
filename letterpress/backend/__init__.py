"""Persistence backends the composition core talks to."""

from .base import BackendResult, PersistenceBackend
from .file_backend import JsonFileBackend

__all__ = ["BackendResult", "JsonFileBackend", "PersistenceBackend"]
