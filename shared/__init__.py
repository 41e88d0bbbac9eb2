"""
Shared utilities for the storage service and its scripts.

- logging_config: consistent root logger setup
"""
