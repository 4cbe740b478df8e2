"""Models of the retired blog engine."""
