"""Journey progress tracking: models, state machine and storage."""
