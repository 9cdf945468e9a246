"""Tests for mutauth.flow.create_flow -- variant selection."""

from __future__ import annotations

from mutauth.flow import MultiSurfaceFlow, SingleSurfaceFlow, create_flow
from mutauth.models import FlowVariant


class TestCreateFlow:
    def test_auto_prefers_multi_surface(self, make_host) -> None:
        flow = create_flow(make_host(multiple=True))
        assert isinstance(flow, MultiSurfaceFlow)
        assert flow.name == "multi"

    def test_auto_falls_back_to_single_surface(self, make_host) -> None:
        flow = create_flow(make_host(multiple=False))
        assert isinstance(flow, SingleSurfaceFlow)
        assert flow.name == "single"

    def test_explicit_variant_wins(self, make_host) -> None:
        assert isinstance(create_flow(make_host(multiple=True), FlowVariant.SINGLE), SingleSurfaceFlow)
        assert isinstance(create_flow(make_host(multiple=False), FlowVariant.MULTI), MultiSurfaceFlow)

    def test_stall_workaround_for_macos_dev_build(self, make_host) -> None:
        flow = create_flow(make_host(), FlowVariant.MULTI, dev_mode=True, system="Darwin")
        assert flow.stall.enabled is True

    def test_no_stall_workaround_for_release_build(self, make_host) -> None:
        flow = create_flow(make_host(), FlowVariant.MULTI, dev_mode=False, system="Darwin")
        assert flow.stall.enabled is False
