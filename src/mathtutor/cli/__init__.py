"""CLI entry points for mathtutor."""
