"""HTTP boundary for the input filter."""
