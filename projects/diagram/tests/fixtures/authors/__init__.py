"""Two models pointing at each other."""
