from .memory import MemoryIssueStore

__all__ = ["MemoryIssueStore"]
