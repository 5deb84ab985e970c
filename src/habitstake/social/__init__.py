"""Social (staked) challenges."""
