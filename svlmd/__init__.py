"""SVLMD: metadata sync for a shared, git-tracked Logseq page collection.

The package is split the same way the sync pipeline runs:

- pages: page model, property-block parser/serializer, page file store
- git_integration: version-control backend (git via subprocess)
- sync: change detection, property reconciliation, ledger, contributors,
  release notes and the SyncEngine orchestrator
- cli: the `svlmd` command line shell around the engine
"""

__version__ = "0.1.0"
