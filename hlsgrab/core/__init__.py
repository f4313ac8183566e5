"""
Core application engine for orchestrating downloads.

The `DownloadManager` acts as the session coordinator, creating one
`DownloadPipeline` per video; each pipeline owns its own reassembler and
retry table.
"""
