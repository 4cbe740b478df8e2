"""Models exercising every way introspection can go wrong."""
