"""Built-in CLI commands for wgsession."""
