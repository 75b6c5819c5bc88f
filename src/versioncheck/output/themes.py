"""Status color maps."""

from versioncheck.models import UsageStatus
from versioncheck.models.version import Version

STATUS_COLORS: dict[UsageStatus, str] = {
    UsageStatus.UP_TO_DATE: "green",
    UsageStatus.OUTDATED: "yellow",
    UsageStatus.ERROR: "red bold",
}


def styled_status(status: UsageStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value}[/{color}]"


def styled_version(version: Version, color: str) -> str:
    text = f"[{color}]{version.main}[/{color}]"
    if version.app:
        text += f" [dim]\\[{version.app}][/dim]"
    return text
