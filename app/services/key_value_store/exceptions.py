"""Custom exceptions for key-value store configuration."""


class InvalidStoreBackendError(Exception):
    """Raised when an unsupported key-value store backend is requested."""
    
    def __init__(self, backend: str):
        self.backend = backend
        super().__init__(f"Invalid key-value store backend: {backend}. Supported backends: redis, memory")
