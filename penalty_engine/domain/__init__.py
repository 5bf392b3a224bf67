"""Domain layer: models, errors and events with no I/O."""
