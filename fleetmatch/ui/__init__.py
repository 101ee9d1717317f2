"""Console UI package for fleetmatch."""

from .console_ui import ConsoleUI

__all__ = ["ConsoleUI"]
