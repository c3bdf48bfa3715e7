"""Infrastructure Layer — logging setup and the logging lifecycle observer."""
