"""Property bag with per-class field accessors."""

from typing import Any, Callable, ClassVar, Dict, Iterator, Mapping, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

_GETTER_MARK = "__querystone_field_getter__"
_SETTER_MARK = "__querystone_field_setter__"


def field_getter(name: str) -> Callable[[F], F]:
    """Route reads of field ``name`` through the decorated method.

    Example:
        >>> class User(RecordItem):
        ...     @field_getter("full_name")
        ...     def _full_name(self):
        ...         return f"{self.get('first')} {self.get('last')}"
    """

    def decorator(func: F) -> F:
        setattr(func, _GETTER_MARK, name)
        return func

    return decorator


def field_setter(name: str) -> Callable[[F], F]:
    """Route writes of field ``name`` through the decorated method.

    The method receives the value and stores whatever it wants with
    ``store``.
    """

    def decorator(func: F) -> F:
        setattr(func, _SETTER_MARK, name)
        return func

    return decorator


class RecordItem:
    """Row-shaped record with an explicit field map.

    Fields live in a plain dict. Subclasses may intercept individual fields
    with ``field_getter``/``field_setter`` methods; the accessor table is
    collected once per class and inherited.
    """

    _field_getters: ClassVar[Dict[str, str]] = {}
    _field_setters: ClassVar[Dict[str, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        getters = dict(cls._field_getters)
        setters = dict(cls._field_setters)
        for attribute, member in vars(cls).items():
            name = getattr(member, _GETTER_MARK, None)
            if name:
                getters[name] = attribute
            name = getattr(member, _SETTER_MARK, None)
            if name:
                setters[name] = attribute
        cls._field_getters = getters
        cls._field_setters = setters

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._fields: Dict[str, Any] = {}
        if data:
            self.update_fields(data)

    def get(self, name: str, default: Any = None) -> Any:
        accessor = self._field_getters.get(name)
        if accessor is not None:
            return getattr(self, accessor)()
        return self._fields.get(name, default)

    def set(self, name: str, value: Any) -> "RecordItem":
        accessor = self._field_setters.get(name)
        if accessor is not None:
            getattr(self, accessor)(value)
        else:
            self._fields[name] = value
        return self

    def store(self, name: str, value: Any) -> None:
        """Write a field directly, bypassing any setter."""
        self._fields[name] = value

    def update_fields(self, data: Mapping[str, Any]) -> "RecordItem":
        for name, value in data.items():
            self.set(name, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._fields)

    def flush(self) -> None:
        self._fields = {}

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._fields or name in self._field_getters

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordItem):
            return NotImplemented
        return type(self) is type(other) and self._fields == other._fields

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._fields!r})"
