"""Jupiter quote synchronization and swap execution for Solana."""

__version__ = "0.1.0"
