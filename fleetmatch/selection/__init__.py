"""Selection package for fleetmatch."""

from .selection_model import SelectionModel

__all__ = ["SelectionModel"]
