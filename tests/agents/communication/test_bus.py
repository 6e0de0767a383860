"""Tests for the per-collector publish/subscribe channel."""

import pytest

from competitive_intel.agents.communication import CollectorChannel
from competitive_intel.exceptions import CollectorError


class TestCollectorChannel:
    @pytest.mark.asyncio
    async def test_data_and_error_topics_are_separate(self, make_record):
        channel = CollectorChannel("c1")
        data, errors = [], []
        channel.subscribe_data(data.append)
        channel.subscribe_error(errors.append)

        await channel.publish_data(make_record())
        await channel.publish_error(CollectorError("network down"))

        assert len(data) == 1
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_publish_reports_failed_handlers(self, make_record):
        channel = CollectorChannel("c1")

        async def broken(record):
            raise ValueError("nope")

        channel.subscribe_data(broken)
        channel.subscribe_data(lambda record: None)

        assert await channel.publish_data(make_record()) == 1

    def test_subscriber_counts(self):
        channel = CollectorChannel("c1")
        unsubscribe = channel.subscribe_data(lambda r: None)
        channel.subscribe_error(lambda e: None)
        assert channel.subscriber_counts() == {"data": 1, "error": 1}

        unsubscribe()
        assert channel.subscriber_counts() == {"data": 0, "error": 1}
