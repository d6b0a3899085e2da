"""HTTP API for the territory run game."""
