"""Exception types raised by the refinement pipeline.

Every failure leaves the pipeline usable: callers show ``str(exc)`` to the user and
keep all form data for correction or retry.
"""
from __future__ import annotations


class RefinementError(Exception):
    """Base class for all pipeline failures."""


class ValidationError(RefinementError):
    """A precondition for a transition, edit or commit was not met."""


class ItemNotFoundError(ValidationError):
    """No variation or combined concept carries the requested id."""

    def __init__(self, collection: str, item_id: str):
        super().__init__(f"No {collection} item with id '{item_id}'")
        self.collection = collection
        self.item_id = item_id


class GenerationError(RefinementError):
    """The idea-generation service failed or returned a malformed result."""


class GenerationInProgressError(GenerationError):
    """A generation request for the same collection is still outstanding."""


class PersistError(RefinementError):
    """The idea store rejected a commit; nothing was written."""
