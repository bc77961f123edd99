"""Dashboard state, filtering, pagination and display formatting."""
