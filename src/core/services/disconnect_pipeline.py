"""Device disconnection orchestration.

The CLI delegates the whole "fetch devices -> check count -> delete -> copy
password" flow to this module so the sequence is testable without a
terminal. Side-effects that belong to the UI (printing) are reported through
`PipelineHooks`; the API and the clipboard are injected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol, Sequence

from core.domain.errors import UnexpectedDeviceCountError
from core.domain.models import Device


class DeviceApi(Protocol):
    def list_devices(self) -> list[Device]:
        ...

    def delete_device(self, device_id: int) -> None:
        ...


class DisconnectStatus(str, Enum):
    NO_DEVICES = "no_devices"
    DISCONNECTED = "disconnected"
    DRY_RUN = "dry_run"


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    fetching: Callable[[], None] | None = None
    fetched: Callable[[Sequence[Device]], None] | None = None
    disconnecting: Callable[[Device], None] | None = None
    disconnected: Callable[[Device], None] | None = None
    warning: Callable[[str], None] | None = None


@dataclass
class DisconnectResult:
    """Output of a pipeline invocation."""

    status: DisconnectStatus
    devices: list[Device] = field(default_factory=list)
    disconnected: Device | None = None
    password_copied: bool = False


def select_device(devices: Sequence[Device]) -> Device:
    """Return the only active device.

    There is no policy to choose among several devices, so anything other
    than exactly one is an error.
    """

    if len(devices) != 1:
        raise UnexpectedDeviceCountError(len(devices))
    return devices[0]


def disconnect(
    *,
    api: DeviceApi,
    hooks: PipelineHooks | None = None,
    password: str | None = None,
    copy_password: Callable[[str], bool] | None = None,
    dry_run: bool = False,
) -> DisconnectResult:
    hooks = hooks or PipelineHooks()

    if hooks.fetching:
        hooks.fetching()
    devices = api.list_devices()

    if not devices:
        return DisconnectResult(status=DisconnectStatus.NO_DEVICES)

    if hooks.fetched:
        hooks.fetched(devices)
    device = select_device(devices)

    if hooks.disconnecting:
        hooks.disconnecting(device)
    if not dry_run:
        api.delete_device(device.id)
    if hooks.disconnected:
        hooks.disconnected(device)

    result = DisconnectResult(
        status=DisconnectStatus.DRY_RUN if dry_run else DisconnectStatus.DISCONNECTED,
        devices=list(devices),
        disconnected=device,
    )

    if password and copy_password is not None:
        result.password_copied = copy_password(password)
        if not result.password_copied and hooks.warning:
            hooks.warning("clipboard unavailable, password was not copied")

    return result
