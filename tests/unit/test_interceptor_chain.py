"""
Unit tests for the interceptor chain executor and the BaseInterceptor hooks.
"""

import pytest

from ioc_engine.di.container import Container
from ioc_engine.interceptor.base import BaseInterceptor
from ioc_engine.interceptor.chain import InterceptorChain


class Target:
    def compute(self, a, b):
        return a + b


class Noop(BaseInterceptor):
    pass


class DoubleFirstArg(BaseInterceptor):
    async def execute(self, target, method_name, call_next, args, container, context=None):
        return await call_next(args[0] * 2, *args[1:])


class ShortCircuit(BaseInterceptor):
    async def execute(self, target, method_name, call_next, args, container, context=None):
        return "cached"


class ContextCapture(BaseInterceptor):
    def __init__(self):
        self.seen = None

    async def execute(self, target, method_name, call_next, args, container, context=None):
        self.seen = (target, method_name, list(args), container, context)
        return await call_next()


class Translating(BaseInterceptor):
    async def on_error(self, target, method_name, error, container, context=None):
        return f"handled {type(error).__name__}"


class ResultDoubling(BaseInterceptor):
    def __init__(self):
        self.before_args = None

    async def before(self, target, method_name, args, container, context=None):
        self.before_args = list(args)

    async def after(self, target, method_name, result, container, context=None):
        return result * 2


class ErrorE(Exception):
    pass


async def returns_seven():
    return 7


def raises_e():
    raise ErrorE("E")


class TestChainResults:
    """Test results and errors flowing through the chain."""

    @pytest.mark.asyncio
    async def test_no_interceptors(self, container: Container):
        target = Target()
        result = await InterceptorChain.execute([], target, "compute", target.compute, [3, 4], container)
        assert result == 7

    @pytest.mark.asyncio
    async def test_noop_interceptors_preserve_result(self, container: Container):
        result = await InterceptorChain.execute(
            [Noop(), Noop(), Noop()], None, "seven", returns_seven, [], container
        )
        assert result == 7

    @pytest.mark.asyncio
    async def test_error_propagates_unchanged(self, container: Container):
        with pytest.raises(ErrorE) as exc_info:
            await InterceptorChain.execute([Noop(), Noop()], None, "fail", raises_e, [], container)
        assert str(exc_info.value) == "E"

    @pytest.mark.asyncio
    async def test_sync_original_method(self, container: Container):
        target = Target()
        result = await InterceptorChain.execute([Noop()], target, "compute", target.compute, [1, 2], container)
        assert result == 3

    @pytest.mark.asyncio
    async def test_short_circuit_skips_method(self, container: Container):
        calls = []

        def method():
            calls.append(1)

        result = await InterceptorChain.execute([ShortCircuit(), Noop()], None, "m", method, [], container)
        assert result == "cached"
        assert calls == []


class TestChainOrdering:
    """Test that interceptors run in list (priority) order."""

    @pytest.mark.asyncio
    async def test_first_interceptor_is_outermost(self, container: Container, recorder, journal):
        interceptors = [recorder("p10"), recorder("p30"), recorder("p50")]

        def method():
            journal.append("method")
            return "done"

        result = await InterceptorChain.execute(interceptors, None, "m", method, [], container)
        assert result == "done"
        assert journal == [
            "p10:before",
            "p30:before",
            "p50:before",
            "method",
            "p50:after",
            "p30:after",
            "p10:after",
        ]


class TestArgumentPassing:
    """Test argument replacement through call_next."""

    @pytest.mark.asyncio
    async def test_modified_args_reach_method(self, container: Container):
        target = Target()
        result = await InterceptorChain.execute(
            [DoubleFirstArg()], target, "compute", target.compute, [5, 3], container
        )
        assert result == 13

    @pytest.mark.asyncio
    async def test_empty_call_next_keeps_args(self, container: Container):
        target = Target()
        capture = ContextCapture()
        result = await InterceptorChain.execute(
            [capture], target, "compute", target.compute, [2, 2], container
        )
        assert result == 4

    @pytest.mark.asyncio
    async def test_downstream_sees_replaced_args(self, container: Container):
        target = Target()
        capture = ContextCapture()
        await InterceptorChain.execute(
            [DoubleFirstArg(), capture], target, "compute", target.compute, [5, 3], container
        )
        assert capture.seen[2] == [10, 3]

    @pytest.mark.asyncio
    async def test_contract_arguments(self, container: Container):
        target = Target()
        capture = ContextCapture()
        context = object()
        await InterceptorChain.execute(
            [capture], target, "compute", target.compute, [1, 1], container, context
        )
        assert capture.seen == (target, "compute", [1, 1], container, context)


class TestBaseInterceptorHooks:
    """Test before/after/on_error hooks."""

    @pytest.mark.asyncio
    async def test_before_and_after(self, container: Container):
        target = Target()
        hooks = ResultDoubling()
        result = await InterceptorChain.execute([hooks], target, "compute", target.compute, [1, 2], container)
        assert result == 6
        assert hooks.before_args == [1, 2]

    @pytest.mark.asyncio
    async def test_on_error_may_translate(self, container: Container):
        result = await InterceptorChain.execute([Translating()], None, "fail", raises_e, [], container)
        assert result == "handled ErrorE"

    @pytest.mark.asyncio
    async def test_default_on_error_reraises(self, container: Container):
        with pytest.raises(ErrorE):
            await InterceptorChain.execute([Noop()], None, "fail", raises_e, [], container)

    def test_resolve_service(self, container: Container):
        container.register_instance("clock", "tick")
        assert Noop().resolve_service(container, "clock") == "tick"
