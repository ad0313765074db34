import os

STORE_BACKENDS = ("postgres", "memory")

_TRUTHY = ("1", "true", "yes", "on")


def store_backend() -> str:
    backend = os.getenv("PIPE_REGISTRY_STORE", "postgres").strip().lower()
    if backend not in STORE_BACKENDS:
        raise ValueError(f"PIPE_REGISTRY_STORE must be one of {', '.join(STORE_BACKENDS)}, got {backend!r}")
    return backend


def verify_created_functions() -> bool:
    """Whether each derived function is read back after it is created."""
    return os.getenv("PIPE_REGISTRY_VERIFY_FUNCTIONS", "true").strip().lower() in _TRUTHY


def log_level() -> str:
    return os.getenv("PIPE_REGISTRY_LOG_LEVEL", "INFO").strip().upper()
