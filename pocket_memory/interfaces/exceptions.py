"""Exception Definitions"""


# Memory exceptions
class MemoryError(Exception):
    """Base class for memory-related errors"""
    pass


class MemoryNotInitializedError(MemoryError):
    """Memory manager used before init() completed"""
    pass


# Storage exceptions
class StorageError(Exception):
    """Base class for storage backend errors"""
    pass


class ConnectionError(StorageError):
    """Cannot open or connect to storage backend"""
    pass


class ConfigurationError(StorageError):
    """Storage configuration error (e.g. embedding dimension mismatch)"""
    pass


class ValidationError(ValueError):
    """Input or configuration validation error"""
    pass


# Embedding exceptions
class EmbeddingError(Exception):
    """Error generating embedding vectors"""
    pass
