"""Command line shell around the sync engine (`svlmd init`, `svlmd sync`)."""
