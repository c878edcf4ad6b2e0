"""
Shared utilities for RMM processes.

- logging_config: consistent log format for the service and scripts
"""
