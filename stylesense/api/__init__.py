"""HTTP API for StyleSense."""
