"""Bootstrap and run-loop code used by the command line."""
