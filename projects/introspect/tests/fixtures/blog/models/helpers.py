"""Helpers living next to the models."""

from re import sub


class Slugger:
    """Not a model."""

    def slug(self, text: str) -> str:
        return sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def slugify(text: str) -> str:
    return Slugger().slug(text)
