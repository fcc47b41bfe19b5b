"""Platform API clients."""
