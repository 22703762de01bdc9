"""Custom exceptions for cache configuration."""


class InvalidEvictionPolicyError(Exception):
    """Raised when an invalid eviction policy is provided."""
    
    def __init__(self, policy: str):
        self.policy = policy
        super().__init__(f"Invalid eviction policy: {policy}. Supported policies: LRU, LFU")


class InvalidMaxKeyCountError(Exception):
    """Raised when an invalid max_size is provided to an eviction index."""
    
    def __init__(self, max_size: int):
        self.max_size = max_size
        super().__init__(f"Invalid max_size: {max_size}. Must be a positive integer greater than 0")
