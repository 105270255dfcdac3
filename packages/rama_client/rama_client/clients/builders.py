"""Query and append builders bound to a client.

Builders are single-use: the terminal call (``select``, ``select_one``,
``append``) consumes the builder and any later use raises
:class:`BuilderConsumedError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from rama_client.domain.exceptions import BuilderConsumedError
from rama_client.domain.path import Path, Step
from rama_client.models import AckLevel, DepotAppendRequest

if TYPE_CHECKING:
    from rama_client.clients.routing_client import RamaClient

R = TypeVar("R")


class PStateQueryBuilder(Path):
    """Builds a PState query path, then runs it with ``select`` or ``select_one``.

    Example::

        names = await (
            client.pstate_query("com.example.Module", "$$profiles")
            .key("alice")
            .must("friends")
            .all()
            .select(str)
        )
    """

    def __init__(self, client: RamaClient, module: str, pstate: str) -> None:
        super().__init__()
        self._client = client
        self._module = module
        self._pstate = pstate
        self._consumed = False

    @property
    def module(self) -> str:
        return self._module

    @property
    def pstate(self) -> str:
        return self._pstate

    def _append(self, step: Step) -> PStateQueryBuilder:
        if self._consumed:
            raise BuilderConsumedError(self.__class__.__name__)
        super()._append(step)
        return self

    def _consume(self) -> list[Step]:
        if self._consumed:
            raise BuilderConsumedError(self.__class__.__name__)
        self._consumed = True
        return self.steps

    async def select(self, result_type: type[R] | Any = Any) -> list[R]:
        """Run the query on the ``select`` endpoint.

        Args:
            result_type: Type of each element of the result list

        Returns:
            All navigated values
        """
        return await self._client.execute(
            self._module,
            f"pstate/{self._pstate}/select",
            self._consume(),
            list[result_type],  # type: ignore[valid-type]
        )

    async def select_one(self, result_type: type[R] | Any = Any) -> R:
        """Run the query on the ``selectOne`` endpoint.

        The cluster rejects paths that navigate to zero or several values; that
        surfaces as an :class:`UnexpectedStatusError`.

        Args:
            result_type: Type of the single result

        Returns:
            The navigated value
        """
        return await self._client.execute(
            self._module,
            f"pstate/{self._pstate}/selectOne",
            self._consume(),
            result_type,
        )


class DepotAppendBuilder:
    """Builds a depot append request.

    The result type of ``append`` depends on the acknowledgment level: with
    ``AckLevel.ACK`` (the server default) it maps each streaming topology name
    to its ack return value, with ``APPEND_ACK`` or ``NONE`` it is an empty
    object.
    """

    def __init__(self, client: RamaClient, module: str, depot: str, data: Any) -> None:
        self._client = client
        self._module = module
        self._depot = depot
        self._data = data
        self._ack_level: AckLevel | None = None
        self._consumed = False

    def ack_level(self, level: AckLevel | str) -> DepotAppendBuilder:
        """Set the acknowledgment level; the server default ``ack`` applies otherwise."""
        if self._consumed:
            raise BuilderConsumedError(self.__class__.__name__)
        self._ack_level = AckLevel(level)
        return self

    def build_request(self) -> DepotAppendRequest:
        """Build the request body model."""
        return DepotAppendRequest(data=self._data, ack_level=self._ack_level)

    async def append(self, result_type: type[R] | Any = dict[str, Any]) -> R:
        """Append the record.

        Args:
            result_type: Type of the response body

        Returns:
            The decoded acknowledgment
        """
        if self._consumed:
            raise BuilderConsumedError(self.__class__.__name__)
        self._consumed = True
        return await self._client.execute(
            self._module,
            f"depot/{self._depot}/append",
            self.build_request().to_wire(),
            result_type,
        )
