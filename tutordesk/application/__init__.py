"""Application layer: services and their wiring."""
