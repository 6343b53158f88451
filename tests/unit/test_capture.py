"""
Tests for CaptureBridge (dump_r/dump_t).
"""

import asyncio

import pytest

from yate_compat.compat import CaptureBridge


class Unprintable:
    def __repr__(self):
        raise RuntimeError("no repr")


class TestCaptureBridge:
    """Testes da fila FIFO de capturas."""

    @pytest.mark.asyncio
    async def test_dump_r(self):
        bridge = CaptureBridge()
        assert await bridge.dump_r("a", 1) == "a 1"
        assert await bridge.dump_r({"k": "v"}) == "{'k': 'v'}"

    @pytest.mark.asyncio
    async def test_dump_t(self):
        bridge = CaptureBridge()
        text = await bridge.dump_t([{"a": 1}])
        assert text.startswith("┌")
        assert text.endswith("┘")

    @pytest.mark.asyncio
    async def test_dump_t_non_tabular(self):
        bridge = CaptureBridge()
        assert await bridge.dump_t(5) == "5"

    @pytest.mark.asyncio
    async def test_sequential_dumps(self):
        bridge = CaptureBridge()
        results = [await bridge.dump_r(i) for i in range(5)]
        assert results == ["0", "1", "2", "3", "4"]
        assert bridge.pending_count == 0

    @pytest.mark.asyncio
    async def test_concurrent_dumps_paired(self):
        bridge = CaptureBridge()
        results = await asyncio.gather(*(bridge.dump_r(f"item-{i}") for i in range(10)))
        assert results == [f"item-{i}" for i in range(10)]

    @pytest.mark.asyncio
    async def test_orphan_flush_ignored(self):
        bridge = CaptureBridge()
        bridge.stream.write("stray\n")
        bridge.stream.flush()

        assert bridge.pending_count == 0
        assert await bridge.dump_r("next") == "next"

    @pytest.mark.asyncio
    async def test_render_error_clears_pending(self):
        bridge = CaptureBridge()
        with pytest.raises(RuntimeError):
            await bridge.dump_r(Unprintable())
        assert bridge.pending_count == 0
        assert await bridge.dump_r("ok") == "ok"

    @pytest.mark.asyncio
    async def test_engine_dump_uses_bridge(self, engine):
        assert await engine.dump_r("x", [1]) == "x [1]"
