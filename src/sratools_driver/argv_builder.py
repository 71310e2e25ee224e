"""Child-process argument vectors with explicit, single-owner release."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from enum import Enum
from types import TracebackType

_UNSET = object()


class ArgvMode(str, Enum):
    """How the vector will be used by the spawn collaborator."""

    REPLACE = "replace"
    WAIT = "wait"


class ArgumentVector:
    """Owned argument vector for one child invocation.

    The vector belongs to whoever called :meth:`ArgvBuilder.build` until
    :meth:`release` is called, either directly or by leaving a ``with``
    block. Passing :attr:`args` to a launcher lends it for that call only.
    """

    __slots__ = ("_args", "_mode")

    def __init__(self, args: list[str], mode: ArgvMode) -> None:
        self._args: list[str] | None = args
        self._mode = mode

    @property
    def mode(self) -> ArgvMode:
        return self._mode

    @property
    def released(self) -> bool:
        return self._args is None

    @property
    def args(self) -> tuple[str, ...]:
        return tuple(self._owned())

    def __len__(self) -> int:
        return len(self._owned())

    def __iter__(self) -> Iterator[str]:
        return iter(self.args)

    def release(self) -> None:
        """Drop every element, then the container itself."""

        args = self._owned()
        args.clear()
        self._args = None

    def __enter__(self) -> ArgumentVector:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self.released:
            self.release()

    def _owned(self) -> list[str]:
        if self._args is None:
            raise RuntimeError("argument vector already released")
        return self._args


class ArgvBuilder:
    """Accumulates options and materializes them into an :class:`ArgumentVector`."""

    def __init__(self) -> None:
        self._options: list[str] = []

    @property
    def options(self) -> tuple[str, ...]:
        return tuple(self._options)

    def add_option(self, flag: str, value: object = _UNSET) -> None:
        _require_flag(flag)
        self._options.append(flag)
        if value is not _UNSET:
            self._options.append(str(value))

    def add_option_list(self, flag: str, values: Iterable[object]) -> None:
        """Emit ``flag value`` once per value."""

        _require_flag(flag)
        for value in values:
            self._options.append(flag)
            self._options.append(str(value))

    def build(
        self,
        argv0: str,
        positional: Sequence[str] = (),
        *,
        mode: ArgvMode = ArgvMode.WAIT,
    ) -> ArgumentVector:
        """Materialize ``argv0``, the options, then the positional arguments.

        ``WAIT`` vectors run one child per accession and therefore take
        exactly one positional argument; ``REPLACE`` vectors take any number.
        """

        if not argv0:
            raise ValueError("argv0 must not be empty")
        if mode is ArgvMode.WAIT and len(positional) != 1:
            raise ValueError(
                f"wait-mode argument vector needs exactly one accession, got {len(positional)}",
            )
        args = [argv0, *self._options, *(str(value) for value in positional)]
        return ArgumentVector(args, mode)


def _require_flag(flag: str) -> None:
    if not flag:
        raise ValueError("option flag must not be empty")
