"""Unit tests for rubick.api.schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rubick.api.schemas import ApiEnvelope, ComposeProject, Container, Host, Image, Network, Volume


class TestApiEnvelope:
    @pytest.mark.parametrize("code", [0, 200])
    def test_success_codes(self, code: int) -> None:
        assert ApiEnvelope(code=code).ok is True

    def test_error_code(self) -> None:
        envelope = ApiEnvelope.model_validate({"code": 500, "message": "docker unavailable"})
        assert envelope.ok is False
        assert envelope.message == "docker unavailable"
        assert envelope.data is None


class TestHost:
    def test_minimal_host(self) -> None:
        host = Host.model_validate({"id": "h1", "name": "local"})
        assert host.type == "local"
        assert host.is_default is False
        assert host.is_active is True

    def test_unknown_fields_ignored(self) -> None:
        host = Host.model_validate({"id": "h1", "name": "local", "tls_ca": "..."})
        assert not hasattr(host, "tls_ca")

    def test_invalid_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Host.model_validate({"id": "h1", "name": "x", "type": "serial"})

    def test_host_is_frozen(self) -> None:
        host = Host(id="h1", name="local")
        with pytest.raises(ValidationError):
            host.name = "other"  # type: ignore[misc]


class TestContainer:
    def test_running(self) -> None:
        assert Container(id="c1", state="running").running is True
        assert Container(id="c1", state="exited").running is False

    def test_nested_records(self) -> None:
        container = Container.model_validate(
            {
                "id": "c1",
                "ports": [{"private_port": 80, "public_port": 8080}],
                "networks": [{"name": "bridge", "ip_address": "172.17.0.2"}],
            }
        )
        assert container.ports[0].public_port == 8080
        assert container.networks[0].ip_address == "172.17.0.2"


class TestImage:
    def test_name_uses_first_tag(self) -> None:
        assert Image(id="sha256:abc", repo_tags=["nginx:latest", "nginx:1"]).name == "nginx:latest"

    def test_untagged_image_uses_short_id(self) -> None:
        image = Image(id="sha256:0123456789abcdef0123")
        assert image.name == "0123456789ab"


class TestOtherRecords:
    def test_volume_requires_name(self) -> None:
        with pytest.raises(ValidationError):
            Volume.model_validate({"driver": "local"})

    def test_network_default_ipam(self) -> None:
        network = Network(id="n1")
        assert network.ipam.config == []

    def test_compose_project_host_ref(self) -> None:
        project = ComposeProject.model_validate({"id": "p1", "host": {"id": "h1", "name": "local"}})
        assert project.host is not None
        assert project.host.id == "h1"
        assert project.source_type == "content"
