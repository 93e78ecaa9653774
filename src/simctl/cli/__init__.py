"""Command-line interfaces: simctl, simsync and simrun."""
