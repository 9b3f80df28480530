"""Domain vocabulary and access policy."""
