"""
Tests for ConstructFactory: per-scope memoization and the init protocol.
"""

import asyncio

import pytest

from stacksmith import ConstructFactory, DirInfo, ResolutionState, Scope
from stacksmith.faults import (
    AlreadyInitializedFault,
    InitializationFault,
    InitializerNotImplementedFault,
    InvalidArgumentFault,
)


class Construct:
    def __init__(self, scope, id, props):
        self.scope = scope
        self.id = id
        self.props = props


class RecordingFactory(ConstructFactory):
    def __init__(self, id, **kwargs):
        super().__init__(id, **kwargs)
        self.calls = []

    async def _init(self, scope, id, dir_info, props):
        self.calls.append((scope, id, dir_info, props))
        return Construct(scope, id, props)


class GatedFactory(RecordingFactory):
    """Blocks in _init until ``gate`` is set."""

    def __init__(self, id, **kwargs):
        super().__init__(id, **kwargs)
        self.gate = asyncio.Event()

    async def _init(self, scope, id, dir_info, props):
        await self.gate.wait()
        return await super()._init(scope, id, dir_info, props)


class FailingFactory(ConstructFactory):
    def __init__(self, id, error):
        super().__init__(id)
        self.error = error

    async def _init(self, scope, id, dir_info, props):
        raise self.error


class NoneFactory(ConstructFactory):
    async def _init(self, scope, id, dir_info, props):
        return None


@pytest.fixture
def dir_info():
    return DirInfo("infra/api")


# ============================================================================
# Construction
# ============================================================================

class TestConstruction:

    @pytest.mark.parametrize("id", ["", None, 12])
    def test_rejects_invalid_id(self, id):
        with pytest.raises(InvalidArgumentFault):
            RecordingFactory(id)

    def test_id(self):
        assert RecordingFactory("users-table").id == "users-table"

    def test_depends_on(self):
        table = RecordingFactory("table")
        api = RecordingFactory("api", depends_on=[table])
        assert api.depends_on == (table,)
        assert table.depends_on == ()

    def test_depends_on_requires_factories(self):
        with pytest.raises(InvalidArgumentFault):
            RecordingFactory("api", depends_on=["table"])

    def test_state_is_none_before_any_request(self):
        assert RecordingFactory("table").state("dev") is None


# ============================================================================
# init
# ============================================================================

class TestInit:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scope", [None, "", 5, object()])
    async def test_rejects_invalid_scope(self, scope, dir_info):
        factory = RecordingFactory("table")
        with pytest.raises(InvalidArgumentFault):
            await factory.init(scope, dir_info, {})
        assert factory.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_dir", [None, "infra/api", {}])
    async def test_rejects_invalid_dir_info(self, bad_dir):
        factory = RecordingFactory("table")
        with pytest.raises(InvalidArgumentFault):
            await factory.init("dev", bad_dir, {})
        assert factory.state("dev") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("props", [None, "a=b", ["a"]])
    async def test_rejects_invalid_props(self, props, dir_info):
        factory = RecordingFactory("table")
        with pytest.raises(InvalidArgumentFault):
            await factory.init("dev", dir_info, props)
        assert factory.state("dev") is None

    @pytest.mark.asyncio
    async def test_invokes_initializer(self, dir_info):
        factory = RecordingFactory("table")
        props = {"region": "eu-west-1"}

        construct = await factory.init("dev", dir_info, props)

        assert len(factory.calls) == 1
        scope, id, received_dir, received_props = factory.calls[0]
        assert (scope, id, received_dir) == ("dev", "table", dir_info)
        assert received_props == props
        assert received_props is not props
        assert construct.id == "table"
        assert factory.state("dev") is ResolutionState.RESOLVED

    @pytest.mark.asyncio
    async def test_initializer_cannot_mutate_caller_props(self, dir_info):
        class Mutating(ConstructFactory):
            async def _init(self, scope, id, dir_info, props):
                props["added"] = True
                return object()

        props = {"region": "eu-west-1"}
        await Mutating("m").init("dev", dir_info, props)
        assert props == {"region": "eu-west-1"}

    @pytest.mark.asyncio
    async def test_scope_object_passed_through(self, dir_info):
        factory = RecordingFactory("table")
        scope = Scope("dev", metadata={"account": "1234"})

        await factory.init(scope, dir_info, {})

        assert factory.calls[0][0] is scope
        assert factory.state("dev") is ResolutionState.RESOLVED

    @pytest.mark.asyncio
    async def test_second_init_fails(self, dir_info):
        factory = RecordingFactory("table")
        first = await factory.init("dev", dir_info, {})

        with pytest.raises(AlreadyInitializedFault) as exc_info:
            await factory.init("dev", dir_info, {})

        assert exc_info.value.metadata["state"] == "resolved"
        assert len(factory.calls) == 1
        assert await factory.get_construct("dev") is first

    @pytest.mark.asyncio
    async def test_second_init_fails_while_in_flight(self, dir_info):
        factory = GatedFactory("table")
        first = asyncio.ensure_future(factory.init("dev", dir_info, {}))
        await asyncio.sleep(0)
        assert factory.state("dev") is ResolutionState.IN_FLIGHT

        with pytest.raises(AlreadyInitializedFault):
            await factory.init("dev", dir_info, {})

        factory.gate.set()
        construct = await first
        assert await factory.get_construct("dev") is construct

    @pytest.mark.asyncio
    async def test_no_retry_after_failure(self, dir_info):
        factory = FailingFactory("table", RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            await factory.init("dev", dir_info, {})

        with pytest.raises(AlreadyInitializedFault):
            await factory.init("dev", dir_info, {})

    @pytest.mark.asyncio
    async def test_scopes_are_independent(self, dir_info):
        factory = RecordingFactory("table")

        dev = await factory.init("dev", dir_info, {"size": 1})
        prod = await factory.init(Scope("prod"), dir_info, {"size": 3})

        assert dev is not prod
        assert await factory.get_construct("dev") is dev
        assert await factory.get_construct("prod") is prod

    @pytest.mark.asyncio
    async def test_base_initializer_not_implemented(self, dir_info):
        factory = ConstructFactory("bare")

        with pytest.raises(InitializerNotImplementedFault) as exc_info:
            await factory.init("dev", dir_info, {})

        assert isinstance(exc_info.value, NotImplementedError)
        assert factory.state("dev") is ResolutionState.FAILED

    @pytest.mark.asyncio
    async def test_initializer_returning_none_fails(self, dir_info):
        factory = NoneFactory("empty")

        with pytest.raises(InitializationFault):
            await factory.init("dev", dir_info, {})

        with pytest.raises(InitializationFault):
            await factory.get_construct("dev")


# ============================================================================
# get_construct
# ============================================================================

class TestGetConstruct:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scope", [None, "", 3])
    async def test_rejects_invalid_scope(self, scope):
        with pytest.raises(InvalidArgumentFault):
            RecordingFactory("table").get_construct(scope)

    @pytest.mark.asyncio
    async def test_pending_until_init(self, dir_info):
        factory = RecordingFactory("table")

        pending = factory.get_construct("dev")
        await asyncio.sleep(0)
        assert not pending.done()
        assert factory.state("dev") is ResolutionState.PENDING

        construct = await factory.init("dev", dir_info, {})
        assert await pending is construct

    @pytest.mark.asyncio
    async def test_request_before_init_does_not_block_init(self, dir_info):
        factory = RecordingFactory("table")
        factory.get_construct("dev")

        await factory.init("dev", dir_info, {})
        assert factory.state("dev") is ResolutionState.RESOLVED

    @pytest.mark.asyncio
    async def test_scopes_resolve_independently(self, dir_info):
        factory = RecordingFactory("table")

        dev = factory.get_construct("dev")
        prod = factory.get_construct("prod")
        construct = await factory.init("dev", dir_info, {})

        assert await dev is construct
        await asyncio.sleep(0)
        assert not prod.done()

    @pytest.mark.asyncio
    async def test_many_waiters_share_one_construct(self, dir_info):
        factory = GatedFactory("table")
        waiters = [factory.get_construct("dev") for _ in range(5)]

        init = asyncio.ensure_future(factory.init("dev", dir_info, {}))
        factory.gate.set()
        construct = await init

        results = await asyncio.gather(*waiters)
        assert all(result is construct for result in results)
        assert len(factory.calls) == 1

    @pytest.mark.asyncio
    async def test_failure_rejects_with_same_error(self, dir_info):
        error = RuntimeError("table quota exceeded")
        factory = FailingFactory("table", error)
        early = factory.get_construct("dev")

        with pytest.raises(RuntimeError) as init_exc:
            await factory.init("dev", dir_info, {})
        assert init_exc.value is error

        with pytest.raises(RuntimeError) as early_exc:
            await early
        assert early_exc.value is error

        for _ in range(2):
            with pytest.raises(RuntimeError) as late_exc:
                await factory.get_construct("dev")
            assert late_exc.value is error

        assert factory.state("dev") is ResolutionState.FAILED

    @pytest.mark.asyncio
    async def test_cancelling_a_waiter_does_not_cancel_resolution(self, dir_info):
        factory = RecordingFactory("table")
        waiter = factory.get_construct("dev")
        waiter.cancel()

        construct = await factory.init("dev", dir_info, {})
        assert await factory.get_construct("dev") is construct


# ============================================================================
# Cross-factory dependencies
# ============================================================================

class TestDependencies:

    @pytest.mark.asyncio
    async def test_dependent_resolves_after_dependency(self, dir_info):
        events = []
        table = GatedFactory("table")

        class Api(ConstructFactory):
            async def _init(self, scope, id, dir_info, props):
                events.append("api:start")
                dependency = await table.get_construct(scope)
                events.append("api:done")
                return Construct(scope, id, {"table": dependency})

        api = Api("api", depends_on=[table])

        api_init = asyncio.ensure_future(api.init("dev", dir_info, {}))
        table_init = asyncio.ensure_future(table.init("dev", dir_info, {}))
        await asyncio.sleep(0)
        assert events == ["api:start"]

        table.gate.set()
        events.append("table:released")
        table_construct, api_construct = await asyncio.gather(table_init, api_init)

        assert events == ["api:start", "table:released", "api:done"]
        assert api_construct.props["table"] is table_construct

    @pytest.mark.asyncio
    async def test_dependency_failure_propagates(self, dir_info):
        error = RuntimeError("no table")
        table = FailingFactory("table", error)

        class Api(ConstructFactory):
            async def _init(self, scope, id, dir_info, props):
                return await table.get_construct(scope)

        api = Api("api")
        results = await asyncio.gather(
            api.init("dev", dir_info, {}),
            table.init("dev", dir_info, {}),
            return_exceptions=True,
        )

        assert results == [error, error]
        assert api.state("dev") is ResolutionState.FAILED
