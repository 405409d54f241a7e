"""Pydantic models for the records returned by the backend REST API.

All models use Pydantic v2 syntax. Unknown fields sent by newer backends are
ignored; fields a backend omits fall back to empty defaults so that a sparse
listing still validates.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class ApiEnvelope(BaseModel):
    """Uniform response wrapper: ``{"code": 0, "message": "...", "data": ...}``.

    ``code`` 0 (or 200 from older handlers) signals success.
    """

    model_config = ConfigDict(extra="ignore")

    code: int
    message: str = ""
    data: object = None

    @property
    def ok(self) -> bool:
        return self.code in (0, 200)


# ---------------------------------------------------------------------------
# Hosts
# ---------------------------------------------------------------------------


class Host(_Record):
    """A container runtime endpoint registered with the backend."""

    id: str
    name: str
    type: Literal["local", "tcp", "ssh"] = "local"
    host: str = ""
    is_default: bool = False
    is_active: bool = True
    description: str = ""
    created_at: str = ""
    updated_at: str = ""
    ssh_user: str | None = None
    ssh_auth_type: str | None = None
    ssh_port: int | None = None
    docker_port: int | None = None
    skip_tls_verify: bool = False


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


class PortMapping(_Record):
    ip: str = ""
    private_port: int = 0
    public_port: int = 0
    type: str = "tcp"


class MountInfo(_Record):
    type: str = ""
    source: str = ""
    destination: str = ""
    mode: str = ""
    rw: bool = True


class NetworkInfo(_Record):
    name: str = ""
    network_id: str = ""
    ip_address: str = ""
    mac_address: str = ""
    gateway: str = ""


class Container(_Record):
    id: str
    name: str = ""
    image: str = ""
    state: str = ""
    status: str = ""
    created: int = 0
    ports: list[PortMapping] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    mounts: list[MountInfo] = Field(default_factory=list)
    networks: list[NetworkInfo] = Field(default_factory=list)

    @property
    def running(self) -> bool:
        return self.state == "running"


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


class Image(_Record):
    id: str
    repo_tags: list[str] = Field(default_factory=list)
    size: int = 0
    created: int = 0
    labels: dict[str, str] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        """First repository tag, or the short image id for untagged images."""
        if self.repo_tags:
            return self.repo_tags[0]
        return self.id.removeprefix("sha256:")[:12]


# ---------------------------------------------------------------------------
# Volumes
# ---------------------------------------------------------------------------


class VolumeUsage(_Record):
    size: int = 0
    ref_count: int = 0


class Volume(_Record):
    name: str
    driver: str = ""
    mountpoint: str = ""
    created_at: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    scope: str = ""
    options: dict[str, str] = Field(default_factory=dict)
    usage_data: VolumeUsage | None = None


# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------


class IPAMConfig(_Record):
    subnet: str = ""
    gateway: str | None = None


class IPAM(_Record):
    driver: str = ""
    config: list[IPAMConfig] = Field(default_factory=list)


class Network(_Record):
    id: str
    name: str = ""
    driver: str = ""
    scope: str = ""
    ipam: IPAM = Field(default_factory=IPAM)
    created: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    internal: bool = False
    attachable: bool = False
    ingress: bool = False
    enable_ipv6: bool = False


# ---------------------------------------------------------------------------
# Compose projects
# ---------------------------------------------------------------------------


class ComposeHostRef(_Record):
    id: str
    name: str = ""
    type: str = ""


class ComposeProject(_Record):
    id: str
    name: str = ""
    host_id: str = ""
    source_type: Literal["content", "directory"] = "content"
    content: str = ""
    work_dir: str = ""
    compose_file: str = ""
    env_file: str = ""
    status: str = ""
    created_at: str = ""
    updated_at: str = ""
    host: ComposeHostRef | None = None
