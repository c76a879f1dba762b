"""Tests for the interceptor registry."""

import httpx
import pytest

from curlish import InterceptorChain, InterceptorManager, RequestModel, RetryConfig

from conftest import Recorder


def append_marker(marker):
    def handler(request):
        request.headers["X-Order"] = request.headers.get("X-Order", "") + marker
        return request

    return handler


class TestInterceptorChain:
    """Test InterceptorChain registration and ejection."""

    def test_use_returns_sequential_ids(self):
        chain = InterceptorChain("request")
        assert chain.use(lambda value: value) == 0
        assert chain.use(lambda value: value) == 1
        assert len(chain) == 2

    def test_eject_keeps_slot(self):
        chain = InterceptorChain("request")
        first = chain.use(lambda value: value + 1)
        chain.use(lambda value: value * 10)

        chain.eject(first)

        assert len(chain) == 2
        assert chain.use(lambda value: value) == 2

    def test_eject_unknown_id_is_ignored(self):
        chain = InterceptorChain("response")
        chain.use(lambda value: value)
        chain.eject(5)
        chain.eject(-1)
        assert len(chain) == 1

    @pytest.mark.asyncio
    async def test_run_applies_in_order_with_async_handlers(self):
        chain = InterceptorChain("request")
        chain.use(lambda value: value + ["a"])

        async def add_b(value):
            return value + ["b"]

        chain.use(add_b)
        chain.use(lambda value: value + ["c"])

        assert await chain.run([]) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_ejected_handler_is_noop(self):
        chain = InterceptorChain("request")
        first = chain.use(lambda value: value + 1)
        chain.use(lambda value: value * 10)
        chain.eject(first)

        assert await chain.run(1) == 10

    @pytest.mark.asyncio
    async def test_handler_error_aborts_run(self):
        chain = InterceptorChain("request")
        seen = []

        def fail(value):
            raise ValueError("denied")

        chain.use(fail)
        chain.use(lambda value: seen.append(value) or value)

        with pytest.raises(ValueError, match="denied"):
            await chain.run(1)
        assert seen == []

    @pytest.mark.asyncio
    async def test_registration_during_run_is_not_observed(self):
        chain = InterceptorChain("request")

        def register_late(value):
            chain.use(lambda v: v + ["late"])
            return value + ["first"]

        chain.use(register_late)

        assert await chain.run([]) == ["first"]
        assert await chain.run([]) == ["first", "late"]

    @pytest.mark.asyncio
    async def test_clear_does_not_disturb_running_call(self):
        chain = InterceptorChain("request")

        def clear_chain(value):
            chain.clear()
            return value + ["first"]

        chain.use(clear_chain)
        chain.use(lambda value: value + ["second"])

        assert await chain.run([]) == ["first", "second"]
        assert len(chain) == 0


def test_manager_clear_resets_both_chains():
    manager = InterceptorManager()
    manager.request.use(lambda value: value)
    manager.response.use(lambda value: value)

    manager.clear()

    assert len(manager.request) == 0
    assert len(manager.response) == 0


class TestExecutorInterceptors:
    """Test interceptors applied by the execution engine."""

    @pytest.mark.asyncio
    async def test_request_interceptors_run_in_registration_order(self, make_executor):
        recorder = Recorder()
        executor = make_executor(recorder)
        executor.interceptors.request.use(append_marker("A"))
        executor.interceptors.request.use(append_marker("B"))

        await executor.execute(RequestModel(url="https://api.example.com"))
        await executor.execute(RequestModel(url="https://api.example.com"))

        assert [r.headers["X-Order"] for r in recorder.requests] == ["AB", "AB"]

    @pytest.mark.asyncio
    async def test_eject_mid_sequence(self, make_executor):
        recorder = Recorder()
        executor = make_executor(recorder)
        first = executor.interceptors.request.use(append_marker("A"))

        async def eject_first(request):
            executor.interceptors.request.eject(first)
            request.headers["X-Order"] = request.headers.get("X-Order", "") + "B"
            return request

        executor.interceptors.request.use(eject_first)

        await executor.execute(RequestModel(url="https://api.example.com"))
        await executor.execute(RequestModel(url="https://api.example.com"))

        # The first call had already applied A; the second sees it as a no-op
        assert [r.headers["X-Order"] for r in recorder.requests] == ["AB", "B"]

    @pytest.mark.asyncio
    async def test_caller_request_is_not_mutated(self, make_executor):
        executor = make_executor(Recorder())
        executor.interceptors.request.use(append_marker("A"))
        request = RequestModel(
            url="https://api.example.com", headers=httpx.Headers({"X-Keep": "1"})
        )

        await executor.execute(request)

        assert "X-Order" not in request.headers
        assert request.headers["X-Keep"] == "1"

    @pytest.mark.asyncio
    async def test_response_interceptors_transform_result(self, make_executor):
        executor = make_executor(Recorder(httpx.Response(200, json={"items": [1, 2]})))

        async def unwrap(response):
            response.data = response.data["items"]
            return response

        executor.interceptors.response.use(unwrap)

        response = await executor.execute(RequestModel(url="https://api.example.com"))
        assert response.data == [1, 2]

    @pytest.mark.asyncio
    async def test_request_interceptor_error_skips_transport(self, make_executor):
        recorder = Recorder()
        executor = make_executor(recorder)

        def reject(request):
            raise PermissionError("not allowed")

        executor.interceptors.request.use(reject)

        with pytest.raises(PermissionError, match="not allowed"):
            await executor.execute(RequestModel(url="https://api.example.com"))
        assert recorder.calls == 0

    @pytest.mark.asyncio
    async def test_response_interceptor_error_is_not_retried(self, make_executor):
        recorder = Recorder()
        executor = make_executor(recorder)

        def reject(response):
            raise ValueError("bad payload")

        executor.interceptors.response.use(reject)
        request = RequestModel(
            url="https://api.example.com", retry=RetryConfig(count=3, delay_ms=0)
        )

        with pytest.raises(ValueError, match="bad payload"):
            await executor.execute(request)
        assert recorder.calls == 1
