"""Terminal client for the DonCEy Kong Jr multiplayer platformer."""
