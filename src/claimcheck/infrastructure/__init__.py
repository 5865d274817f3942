"""Infrastructure: configuration, logging, dependency wiring and entrypoint."""
