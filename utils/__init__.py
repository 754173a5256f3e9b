"""Helpers shared by the CLI and the API: input validation and output rendering."""
