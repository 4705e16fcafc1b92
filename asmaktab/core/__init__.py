"""Core module for the asmaktab application."""

from .types import FirestoreDocument

__all__ = ["FirestoreDocument"]
