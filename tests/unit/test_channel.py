"""
Tests for channel mode (YateChannel).
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from conftest import connect_client, make_client, wait_until

EXECUTE = "%%>message:ex1:1700000000:call.execute::id=sip/1:callto=external/nodata/ivr.py"


@pytest_asyncio.fixture
async def channel_client(fake_yate):
    client = make_client(channel=True)
    await connect_client(client, fake_yate)
    yield client
    await client.disconnect()


class TestChannel:
    """Testes do modo canal."""

    @pytest.mark.asyncio
    async def test_connects_with_channel_role(self, channel_client, fake_yate):
        assert fake_yate.lines[0] == "%%>connect:channel"
        assert channel_client.channel.id.startswith("python/")

    @pytest.mark.asyncio
    async def test_call_execute_answered_with_targetid(self, channel_client, fake_yate):
        channel = channel_client.channel
        main = AsyncMock()
        channel.init(main)

        fake_yate.feed(EXECUTE)
        await wait_until(lambda: main.await_count == 1)

        answer = fake_yate.sent("%%<message:ex1")[0]
        assert answer.startswith("%%<message:ex1:true:call.execute:")
        assert answer.endswith(f":targetid={channel.id}")
        assert channel.ready is True
        assert channel.peerid == "sip/1"
        assert main.await_args.args[0].name == "call.execute"

    @pytest.mark.asyncio
    async def test_autoring(self, channel_client, fake_yate):
        channel = channel_client.channel
        channel.init(AsyncMock(), autoring=True)

        fake_yate.feed(EXECUTE)
        await wait_until(lambda: fake_yate.sent("%%>message"))

        ringing = fake_yate.sent("%%>message")[0]
        assert ":chan.masquerade:" in ringing
        assert "message=call.ringing" in ringing
        assert "id=sip/1" in ringing

    @pytest.mark.asyncio
    async def test_second_execute_not_handled(self, channel_client, fake_yate):
        channel_client.channel.init(AsyncMock())

        fake_yate.feed(EXECUTE)
        fake_yate.feed(EXECUTE.replace("ex1", "ex2"))
        await wait_until(lambda: fake_yate.sent("%%<message:ex2"))

        assert ":false:" in fake_yate.sent("%%<message:ex2")[0]

    @pytest.mark.asyncio
    async def test_answered(self, channel_client, fake_yate):
        channel = channel_client.channel
        channel.init(AsyncMock())
        assert fake_yate.sent("%%>watch:call.answered")

        fake_yate.feed(EXECUTE)
        await wait_until(lambda: channel.ready)
        assert await channel.answered(timeout=0.01) is False

        fake_yate.feed("%%<message::true:call.answered::id=sip/1")
        assert await channel.answered(timeout=1.0) is True

    @pytest.mark.asyncio
    async def test_call_to(self, channel_client, fake_yate):
        channel = channel_client.channel
        channel.init(AsyncMock())
        fake_yate.feed(EXECUTE)
        await wait_until(lambda: channel.ready)
        fake_yate.handled["chan.masquerade"] = ""

        assert await channel.callTo("wave/play/./share/sounds/welcome.au") is True

        line = fake_yate.sent("%%>message")[-1]
        assert "message=call.execute" in line
        assert "callto=wave/play/./share/sounds/welcome.au" in line

    @pytest.mark.asyncio
    async def test_hangup(self, channel_client, fake_yate):
        channel = channel_client.channel
        await channel.hangup("busy")

        line = fake_yate.sent("%%>message")[-1]
        assert "message=call.drop" in line
        assert "reason=busy" in line

    @pytest.mark.asyncio
    async def test_main_error_is_logged(self, channel_client, fake_yate):
        main = AsyncMock(side_effect=RuntimeError("boom"))
        channel_client.channel.init(main)

        fake_yate.feed(EXECUTE)
        await wait_until(lambda: main.await_count == 1)
        await asyncio.sleep(0)
        assert channel_client.connected

    @pytest.mark.asyncio
    async def test_call_just_releases_channel(self, channel_client, fake_yate):
        channel = channel_client.channel
        channel.init(AsyncMock())
        fake_yate.feed(EXECUTE)
        await wait_until(lambda: channel.ready)
        fake_yate.handled["chan.masquerade"] = ""

        assert await channel.callJust("sip/100") is True

        assert channel.ready is False
        assert channel_client.connected is False
