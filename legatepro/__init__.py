"""LegatePro estate administration API."""
