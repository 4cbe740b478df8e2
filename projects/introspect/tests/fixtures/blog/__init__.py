"""Blog application used as an introspection fixture."""
