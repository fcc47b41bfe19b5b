"""trading-cli command surface."""
