"""Package manifest normalization, validation and host selection."""
