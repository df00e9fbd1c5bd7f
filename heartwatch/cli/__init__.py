"""heartwatch command line interface."""
