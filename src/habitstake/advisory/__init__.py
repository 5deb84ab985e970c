"""Advisory heuristics: suggestions, reminder timing, success odds, reports."""
