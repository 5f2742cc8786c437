"""CLI subcommands for jobhealth."""
