"""Terminal presentation: rendering, typing effect, speech and line input."""
