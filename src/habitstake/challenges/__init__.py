"""Personal challenges and the progress log."""
