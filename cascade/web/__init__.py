"""Browser UI for the restoration cascade."""
