from .suffixer import AwaitMethodSuffixer, suffix_awaited_methods  # noreorder

__all__ = ["AwaitMethodSuffixer", "suffix_awaited_methods"]
