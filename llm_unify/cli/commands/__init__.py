"""Click subcommands, grouped by concern."""
