"""Shop catalog with every relationship kind."""
