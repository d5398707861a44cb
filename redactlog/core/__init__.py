"""Core components: configuration, exceptions and the logging pipeline."""
