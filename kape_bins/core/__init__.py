"""
Core application engine for orchestrating a sync run.

`SyncManager` is the session coordinator: it walks the module tree with the
scanner, hands each reference to the `Downloader`, and finishes with the
promotion step.
"""
