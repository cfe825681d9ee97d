"""
Volume Shadow Copy source.

Reads Windows shadow copies and shadow storage through WMI. Queries run
``Get-WmiObject`` in Windows PowerShell and read its JSON output, so the
command runner can be replaced in tests.

WMI classes used:
- Win32_Volume: capacity and free space of the drive
- Win32_ShadowStorage: max/allocated/used diff area per volume
- Win32_ShadowCopy: the snapshots themselves
"""

import json
import logging
import re
import subprocess
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from housekeeper.core.exceptions import (
    DeletionFailedError,
    InvalidArtifactError,
    SourceUnavailableError,
)
from housekeeper.retention.models import Artifact
from housekeeper.retention.usage import UsageSnapshot
from housekeeper.sources.base import ArtifactSource, VolumeSource

logger = logging.getLogger(__name__)

# Runs a PowerShell script and returns its standard output.
CommandRunner = Callable[[str], str]

# https://learn.microsoft.com/windows/win32/wmisdk/cim-datetime
WMI_DATETIME_RE = re.compile(
    r"""\A
    (?P<year>\d{4})(?P<mon>\d{2})(?P<day>\d{2})
    (?P<hour>\d{2})(?P<min>\d{2})(?P<sec>\d{2})
    \.(?P<usec>\d{6})
    (?P<zone>[+-]\d{3})
    \Z""",
    re.VERBOSE,
)

VOLUME_REF_RE = re.compile(r'\AWin32_Volume\.DeviceID="(?P<device_id>[^"]*)"\Z')

SHADOW_ID_RE = re.compile(r"\A\{[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}\}\Z")


def parse_wmi_datetime(value: str) -> datetime:
    """
    Parse a CIM datetime such as ``20240101120000.000000+540``.

    The trailing offset is in minutes from UTC.

    Raises:
        InvalidArtifactError: If the value is not a CIM datetime
    """
    m = WMI_DATETIME_RE.match(value or "")
    if not m:
        raise InvalidArtifactError(f"Invalid WMI datetime: {value}", value=value)

    tz = timezone(timedelta(minutes=int(m["zone"])))
    return datetime(
        int(m["year"]),
        int(m["mon"]),
        int(m["day"]),
        int(m["hour"]),
        int(m["min"]),
        int(m["sec"]),
        int(m["usec"]),
        tzinfo=tz,
    )


def parse_volume_ref(ref: str) -> str:
    """Extract the device id from a ``Win32_Volume.DeviceID="..."`` reference."""
    m = VOLUME_REF_RE.match(ref or "")
    if not m:
        raise SourceUnavailableError(f"Invalid Win32_Volume reference: {ref}", source="vss")
    return m["device_id"].replace("\\\\", "\\")


def normalize_drive(drive: str) -> str:
    """Normalize a drive letter to the ``C:`` form."""
    drive = drive.strip().upper().rstrip("\\")
    if not drive.endswith(":"):
        drive += ":"
    return drive


def run_powershell(script: str) -> str:
    """Run a Windows PowerShell script and return its output."""
    try:
        completed = subprocess.run(
            ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", script],
            capture_output=True,
            text=True,
            check=True,
            shell=False,
        )
    except FileNotFoundError as e:
        raise SourceUnavailableError("PowerShell is not available", source="vss") from e
    except subprocess.CalledProcessError as e:
        raise SourceUnavailableError(
            f"WMI command failed with exit code {e.returncode}",
            source="vss",
            details={"stderr": (e.stderr or "").strip()},
        ) from e
    return completed.stdout


class WmiClient:
    """
    Minimal WMI query client.

    Constructed explicitly and injected into VssSource, so tests can
    provide a fake command runner.
    """

    def __init__(self, runner: CommandRunner | None = None):
        self._runner = runner or run_powershell

    def run(self, script: str) -> str:
        logger.debug(f"WMI: {script}")
        return self._runner(script)

    def query(
        self,
        class_name: str,
        where: str | None = None,
        properties: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Query instances of a WMI class.

        Returns:
            List of property dictionaries (empty if none match)
        """
        script = f"Get-WmiObject -Class {class_name}"
        if where:
            script += f' -Filter "{where}"'
        if properties:
            script += f" | Select-Object {','.join(properties)}"
        script += " | ConvertTo-Json -Compress -Depth 3"
        return self.parse_json(self.run(script))

    @staticmethod
    def parse_json(output: str) -> list[dict[str, Any]]:
        output = (output or "").strip()
        if not output:
            return []
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise SourceUnavailableError(
                "Unreadable WMI output", source="vss", details={"error": str(e)}
            ) from e
        if isinstance(data, dict):
            return [data]
        return list(data)


class VssSource(ArtifactSource, VolumeSource):
    """
    Shadow copies of a single drive.

    The volume and its shadow storage are looked up once at construction;
    either being absent is a setup error.
    """

    source_type = "vss"

    VOLUME_PROPERTIES = ["DeviceID", "DriveLetter", "Capacity", "FreeSpace"]
    STORAGE_PROPERTIES = ["AllocatedSpace", "MaxSpace", "UsedSpace", "Volume", "DiffVolume"]
    SHADOW_PROPERTIES = ["ID", "InstallDate", "VolumeName", "DeviceObject", "SetID"]

    def __init__(self, drive: str = "C:", client: WmiClient | None = None):
        """
        Initialize the source.

        Args:
            drive: Drive letter of the volume
            client: WMI client (default: PowerShell-backed)

        Raises:
            SourceUnavailableError: If the volume or its shadow storage is missing
        """
        self._drive = normalize_drive(drive)
        self._client = client or WmiClient()
        self._device_id = self._find_volume()["DeviceID"]
        self._find_shadow_storage()

    @property
    def drive(self) -> str:
        return self._drive

    @property
    def device_id(self) -> str:
        return self._device_id

    @property
    def volume_id(self) -> str:
        return self._drive

    def _find_volume(self) -> dict[str, Any]:
        for volume in self._client.query("Win32_Volume", properties=self.VOLUME_PROPERTIES):
            if (volume.get("DriveLetter") or "").upper() == self._drive:
                return volume
        raise SourceUnavailableError(
            f"No volume mapped by the drive letter: {self._drive}",
            source=self.source_type,
        )

    def _find_shadow_storage(self) -> dict[str, Any]:
        storages = self._client.query("Win32_ShadowStorage", properties=self.STORAGE_PROPERTIES)
        for storage in storages:
            if parse_volume_ref(storage.get("Volume", "")).casefold() == self._device_id.casefold():
                return storage
        raise SourceUnavailableError(
            f"Shadow storage is not set up for {self._drive}",
            source=self.source_type,
            details={"device_id": self._device_id},
        )

    def _to_artifact(self, obj: dict[str, Any]) -> Artifact:
        try:
            created_at = parse_wmi_datetime(obj.get("InstallDate", ""))
        except InvalidArtifactError as e:
            raise InvalidArtifactError(
                e.message, artifact_id=obj.get("ID"), value=obj.get("InstallDate")
            ) from e
        return Artifact(
            id=obj["ID"],
            created_at=created_at,
            origin=obj.get("VolumeName"),
            name=obj.get("DeviceObject"),
            attributes={"set_id": obj.get("SetID")},
        )

    def list(self) -> list[Artifact]:
        shadows = self._client.query("Win32_ShadowCopy", properties=self.SHADOW_PROPERTIES)
        return [
            self._to_artifact(obj)
            for obj in shadows
            if (obj.get("VolumeName") or "").casefold() == self._device_id.casefold()
        ]

    def create(self) -> str:
        script = (
            f"$r = (Get-WmiObject -List Win32_ShadowCopy).Create('{self._drive}\\', 'ClientAccessible'); "
            "$r | Select-Object ReturnValue,ShadowID | ConvertTo-Json -Compress"
        )
        results = WmiClient.parse_json(self._client.run(script))
        if not results or results[0].get("ReturnValue") != 0:
            code = results[0].get("ReturnValue") if results else None
            raise SourceUnavailableError(
                f"Failed to create shadow copy on {self._drive}",
                source=self.source_type,
                details={"return_value": code},
            )
        shadow_id = results[0]["ShadowID"]
        logger.info(f"Created shadow copy: {shadow_id}")
        return shadow_id

    def delete(self, artifact_id: str) -> Artifact | None:
        if not SHADOW_ID_RE.match(artifact_id):
            raise DeletionFailedError(f"Invalid shadow copy id: {artifact_id}", artifact_id=artifact_id)

        where = f"ID='{artifact_id}'"
        found = self._client.query("Win32_ShadowCopy", where=where, properties=self.SHADOW_PROPERTIES)
        if not found:
            return None

        artifact = self._to_artifact(found[0])
        try:
            self._client.run(f'Get-WmiObject -Class Win32_ShadowCopy -Filter "{where}" | ForEach-Object {{ $_.Delete() }}')
        except SourceUnavailableError as e:
            raise DeletionFailedError(
                f"Could not delete shadow copy {artifact_id}: {e}",
                artifact_id=artifact_id,
            ) from e
        return artifact

    def usage(self) -> UsageSnapshot:
        volume = self._find_volume()
        storage = self._find_shadow_storage()
        return UsageSnapshot(
            volume_id=self._drive,
            capacity_bytes=int(volume.get("Capacity") or 0),
            free_bytes=int(volume.get("FreeSpace") or 0),
            shadow_max_bytes=int(storage.get("MaxSpace") or 0),
            shadow_allocated_bytes=int(storage.get("AllocatedSpace") or 0),
            shadow_used_bytes=int(storage.get("UsedSpace") or 0),
        )
