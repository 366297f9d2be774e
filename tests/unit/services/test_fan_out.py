"""
Unit tests for chunked fan-out.
"""
import pytest

from sitepulse.application.fan_out import chunked, fan_out


class TestChunked:

    def test_splits_into_batches(self):
        assert chunked(list(range(5)), 2) == [[0, 1], [2, 3], [4]]

    def test_empty(self):
        assert chunked([], 50) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunked([1], 0)


class TestFanOut:

    @pytest.mark.asyncio
    async def test_results_concatenated_in_batch_order(self):
        calls = []

        async def fetch(batch):
            calls.append(batch)
            return [item * 10 for item in batch]

        result = await fan_out(list(range(120)), fetch, batch_size=50)

        assert [len(c) for c in calls] == [50, 50, 20]
        assert result == [i * 10 for i in range(120)]

    @pytest.mark.asyncio
    async def test_no_items_no_calls(self):
        async def fetch(batch):
            raise AssertionError("fetch should not be called")

        assert await fan_out([], fetch) == []
