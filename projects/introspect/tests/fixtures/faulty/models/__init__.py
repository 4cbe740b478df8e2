"""Faulty models; broken.py is deliberately not imported here."""

from faulty.models.ghost import Ghost
from faulty.models.sluggish import Sluggish
from faulty.models.widget import Gadget, Picky, Widget

__all__ = ["Gadget", "Ghost", "Picky", "Sluggish", "Widget"]
