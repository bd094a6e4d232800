"""Gateway profiles and CLI configuration."""
