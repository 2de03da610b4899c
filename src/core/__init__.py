"""Application layer of the Hollow Knight save editor."""
