from collections.abc import Callable, Iterable, Iterator, Mapping

Handler = Callable[[], None]


class DispatchTable:
    """Names understood at one block level, each bound to a zero-argument handler.

    Names compare case-insensitively and keep their insertion order. A table
    applies to a single level only; nested blocks are read with their own
    table.
    """

    def __init__(self, entries: Mapping[str, Handler] | Iterable[tuple[str, Handler]] = ()):
        self._handlers: dict[str, Handler] = {}
        items = entries.items() if isinstance(entries, Mapping) else entries
        for name, handler in items:
            self.register(name, handler)

    def register(self, name: str, handler: Handler) -> None:
        key = name.lower()
        if key in self._handlers:
            raise ValueError(f"Duplicate dispatch name: {name!r}")
        if not callable(handler):
            raise TypeError(f"Handler for {name!r} is not callable")
        self._handlers[key] = handler

    def get(self, name: str) -> Handler | None:
        return self._handlers.get(name.lower())

    def names(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"DispatchTable({self.names()!r})"
