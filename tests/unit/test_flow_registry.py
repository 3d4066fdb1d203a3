"""
Unit tests for FlowRegistry.

Each record wires a flow, a reset controller and a recording navigator;
removed or evicted records are closed so their redirect timers stop.
"""

from unittest.mock import Mock

import pytest

from src.api.flows import FlowRegistry, RecordingNavigator
from src.domain.links import parse_action_link
from src.domain.ports import VerificationStatus


@pytest.fixture
def registry(gateway: Mock, profile_store) -> FlowRegistry:
    return FlowRegistry(gateway, profile_store, redirect_delay=0.05, max_flows=2)


class TestFlowRegistry:
    """Tests for create/get/remove and bounded capacity."""

    def test_create_registers_loading_flow(self, registry: FlowRegistry) -> None:
        record = registry.create()

        assert registry.get(record.flow_id) is record
        assert record.flow.status == VerificationStatus.LOADING
        assert record.reset.busy is False
        assert isinstance(record.navigator, RecordingNavigator)
        assert len(registry) == 1

    def test_flow_ids_are_unique(self, registry: FlowRegistry) -> None:
        assert registry.create().flow_id != registry.create().flow_id

    def test_unknown_id_raises_key_error(self, registry: FlowRegistry) -> None:
        with pytest.raises(KeyError):
            registry.get("missing")

    def test_full_registry_evicts_and_closes_oldest(self, registry: FlowRegistry) -> None:
        first = registry.create()
        second = registry.create()

        third = registry.create()

        assert len(registry) == 2
        assert first.flow.closed
        assert not second.flow.closed
        with pytest.raises(KeyError):
            registry.get(first.flow_id)
        assert registry.get(third.flow_id) is third

    def test_remove_closes_flow(self, registry: FlowRegistry) -> None:
        record = registry.create()

        registry.remove(record.flow_id)

        assert record.flow.closed
        with pytest.raises(KeyError):
            registry.remove(record.flow_id)

    def test_close_all(self, registry: FlowRegistry) -> None:
        records = [registry.create(), registry.create()]

        registry.close_all()

        assert len(registry) == 0
        assert all(r.flow.closed for r in records)

    @pytest.mark.asyncio
    async def test_reset_success_recorded_on_navigator(self, registry: FlowRegistry) -> None:
        record = registry.create()
        await record.flow.process(parse_action_link("mode=resetPassword&oobCode=XYZ"))

        assert await record.reset.submit("password123!", "password123!") is True

        assert record.navigator.target == "/"
        assert record.navigator.navigations == 1

    def test_zero_capacity_rejected(self, gateway: Mock, profile_store) -> None:
        """A registry that can hold no flow is a configuration error."""
        with pytest.raises(ValueError):
            FlowRegistry(gateway, profile_store, max_flows=0)

    def test_capacity_of_one_replaces_previous(self, gateway: Mock, profile_store) -> None:
        registry = FlowRegistry(gateway, profile_store, max_flows=1)
        first = registry.create()

        second = registry.create()

        assert len(registry) == 1
        assert first.flow.closed
        assert registry.get(second.flow_id) is second
