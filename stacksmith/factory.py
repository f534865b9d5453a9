"""
Construct factories - per-scope, memoized construct resolution.

A ConstructFactory wraps one construct definition. Subclasses implement
the asynchronous ``_init`` hook; the base class turns each initialization
into an awaitable that any number of callers can share::

    class OrdersTable(ConstructFactory[Table]):
        async def _init(self, scope, id, dir_info, props):
            return Table(scope, id, billing=props.get("billing", "on-demand"))

    class OrdersApi(ConstructFactory[Api]):
        async def _init(self, scope, id, dir_info, props):
            table = await orders_table.get_construct(scope)
            return Api(scope, id, table=table)

``get_construct`` may be called before ``init`` has run for a scope: the
returned awaitable settles once ``init`` for that scope completes. This is
what lets constructs discovered in arbitrary order reference each other.
No cycle detection is done at this level; two initializers awaiting each
other pend forever (see ``stacksmith.graph`` for the declared-dependency
check performed by the builder).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, Generic, Iterable, Optional, Tuple, TypeVar

from .dir_info import DirInfo
from .faults import (
    AlreadyInitializedFault,
    InitializationFault,
    InitializerNotImplementedFault,
)
from .scope import scope_key
from .validation import check_instance, check_mapping, check_string

logger = logging.getLogger("stacksmith.factory")

T = TypeVar("T")


class ResolutionState(str, Enum):
    """Lifecycle of a construct within one scope."""

    PENDING = "pending"        # Requested, init() not called yet
    IN_FLIGHT = "in_flight"    # init() running
    RESOLVED = "resolved"
    FAILED = "failed"


def _retrieve(future: asyncio.Future) -> None:
    # init() re-raises the failure to its own caller.
    if not future.cancelled():
        future.exception()


class ConstructInfo(Generic[T]):
    """
    Resolution record for one (factory, scope) pair.

    Holds the construct once resolved and the future every caller of
    ``get_construct`` awaits. Settles exactly once.
    """

    __slots__ = ("_future", "_instance", "_state")

    def __init__(self) -> None:
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._future.add_done_callback(_retrieve)
        self._instance: Optional[T] = None
        self._state = ResolutionState.PENDING

    @property
    def instance(self) -> Optional[T]:
        """The construct, or None until the record resolves."""
        return self._instance

    @property
    def future(self) -> asyncio.Future:
        return self._future

    @property
    def state(self) -> ResolutionState:
        return self._state

    def start(self) -> None:
        self._state = ResolutionState.IN_FLIGHT

    def resolve(self, construct: T) -> None:
        self._instance = construct
        self._state = ResolutionState.RESOLVED
        self._future.set_result(construct)

    def reject(self, error: BaseException) -> None:
        self._state = ResolutionState.FAILED
        self._future.set_exception(error)


class ConstructFactory(Generic[T]):
    """
    Generates constructs of one kind, bound to different scopes.

    Args:
        id: Identifier handed to the initializer for every scope.
        depends_on: Optional factories this one awaits during ``_init``.
            Declaring them lets the builder reject dependency cycles
            before any initializer runs.
    """

    def __init__(self, id: str, *, depends_on: Iterable["ConstructFactory"] = ()) -> None:
        check_string(id, "Invalid id (arg #1)", argument="id")
        self._id = id
        self._construct_map: Dict[str, ConstructInfo[T]] = {}
        self._depends_on: Tuple[ConstructFactory, ...] = tuple(
            check_instance(dep, ConstructFactory, "Invalid dependency", argument="depends_on")
            for dep in depends_on
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def depends_on(self) -> Tuple["ConstructFactory", ...]:
        return self._depends_on

    def _get_construct_info(self, key: str) -> ConstructInfo[T]:
        # Check-and-create must not suspend: it is what keeps a single
        # record per scope without a lock.
        info = self._construct_map.get(key)
        if info is None:
            info = ConstructInfo()
            self._construct_map[key] = info
        return info

    def state(self, scope: Any) -> Optional[ResolutionState]:
        """Resolution state for ``scope``, or None if never requested."""
        info = self._construct_map.get(scope_key(scope))
        return info.state if info is not None else None

    async def _init(
        self,
        scope: Any,
        id: str,
        dir_info: DirInfo,
        props: Dict[str, Any],
    ) -> T:
        """
        Create the construct for ``scope``.

        Must be overridden. ``props`` is a private copy of the configuration
        bag; ``dir_info`` describes the directory the definition lives in.
        """
        raise InitializerNotImplementedFault(type(self).__name__)

    async def init(self, scope: Any, dir_info: DirInfo, props: Mapping[str, Any]) -> T:
        """
        Initialize the construct for ``scope``.

        Runs at most once per scope. On success every pending and future
        ``get_construct(scope)`` call receives the construct; on failure
        they receive the same error, which is also raised here.

        Raises:
            InvalidArgumentFault: malformed scope, dir_info or props.
            AlreadyInitializedFault: init() already ran (or is running,
                or failed) for this scope.
        """
        key = scope_key(scope)
        check_instance(dir_info, DirInfo, "Invalid dirInfo (arg #2)", argument="dir_info")
        check_mapping(props, "Invalid props (arg #3)", argument="props")

        info = self._get_construct_info(key)
        if info.state is not ResolutionState.PENDING:
            raise AlreadyInitializedFault(self._id, key, info.state.value)
        info.start()

        logger.debug(f"Initializing construct '{self._id}' for scope [{key}]")
        try:
            construct = await self._init(scope, self._id, dir_info, dict(props))
            if construct is None:
                raise InitializationFault(self._id, key, "initializer returned no construct")
        except Exception as exc:
            logger.warning(f"Construct '{self._id}' failed for scope [{key}]: {exc}")
            info.reject(exc)
            raise

        info.resolve(construct)
        logger.debug(f"Construct '{self._id}' resolved for scope [{key}]")
        return construct

    def get_construct(self, scope: Any) -> asyncio.Future:
        """
        Return an awaitable for the construct bound to ``scope``.

        Safe to call before ``init``: the awaitable settles once ``init``
        for the same scope completes, and never settles if it is never
        called. Must be called while an event loop is running.

        Raises:
            InvalidArgumentFault: malformed scope.
        """
        info = self._get_construct_info(scope_key(scope))
        return asyncio.shield(info.future)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r})"
