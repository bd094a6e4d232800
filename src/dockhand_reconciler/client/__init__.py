"""HTTP client for the Dockhand gateway."""
