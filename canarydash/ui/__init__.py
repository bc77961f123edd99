"""Terminal and headless views."""
