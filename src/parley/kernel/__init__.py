"""Session engine: completeness, references, indicator and generation."""
