"""Cache backend protocol definitions."""

from typing import Any, Callable, Dict, Optional, Protocol

from typing_extensions import runtime_checkable


@runtime_checkable
class CacheProtocol(Protocol):
    """Protocol defining the cache backend interface used by the engine.

    Any class implementing these methods can back the result cache. Keys
    are opaque fixed-length hash strings.
    """

    def is_enabled(self) -> bool:
        """Whether results should be looked up and stored at all."""
        ...

    def get(self, key: str, loader: Optional[Callable[[], Any]] = None) -> Any:
        """Get value from cache or load it."""
        ...

    def save(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a fully computed value with optional TTL."""
        ...

    def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        ...

    def delete(self, key: str) -> bool:
        """Remove key from cache."""
        ...

    def clear(self, pattern: str = "*") -> int:
        """Clear keys matching pattern."""
        ...

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        ...
