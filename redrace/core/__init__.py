"""Core types and helpers shared by every blueprint."""

from .batch import BatchProcessor
from .types import FirestoreDocument

__all__ = ["BatchProcessor", "FirestoreDocument"]
