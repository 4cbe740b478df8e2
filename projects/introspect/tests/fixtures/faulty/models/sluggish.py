"""Model with an accessor that takes too long."""

from time import sleep

from faulty.models.base import AbstractThing
from introspect import HasMany


class Sluggish(AbstractThing):
    """Probing this model exceeds any short timeout."""

    __tablename__ = "sluggish"

    def crawl(self) -> HasMany:
        sleep(1.0)
        return HasMany(self, Sluggish, foreign_key="parent_id")
