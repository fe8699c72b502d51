"""Server version parsing and version requirement checks.

Operations that only exist on some vault versions, or only on self-hosted
or Privilege Cloud deployments, assert their requirement before calling the
API.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .restapi import VersionRequirementError

if TYPE_CHECKING:
    from .session import Session


@dataclass(frozen=True, order=True)
class Version:
    """A ``major.minor.patch`` version. Missing parts count as 0."""

    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse ``"14.0"``, ``"v12.6.1"`` and similar.

        Only the first three dot-separated parts are read.

        Raises:
            ValueError: If one of those parts is not an integer.
        """
        parts = text.removeprefix("v").removeprefix("V").split(".")
        numbers = []
        for name, part in zip(("major", "minor", "patch"), parts, strict=False):
            try:
                numbers.append(int(part))
            except ValueError:
                msg = f"invalid {name} version: {part}"
                raise ValueError(msg) from None
        return cls(*numbers)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class VersionRequirement:
    """Inclusive version bounds; a missing bound is unconstrained."""

    min_version: Version | None = None
    max_version: Version | None = None

    @classmethod
    def from_strings(cls, min_version: str = "", max_version: str = "") -> "VersionRequirement":
        return cls(
            min_version=Version.parse(min_version) if min_version else None,
            max_version=Version.parse(max_version) if max_version else None,
        )

    def is_satisfied(self, version: Version) -> bool:
        if self.min_version is not None and version < self.min_version:
            return False
        return self.max_version is None or version <= self.max_version


def assert_version_requirement(
    current_version: str,
    min_version: str = "",
    max_version: str = "",
    *,
    privilege_cloud_required: bool = False,
    self_hosted_required: bool = False,
    is_privilege_cloud: bool = False,
) -> None:
    """Check that the connected server can run an operation.

    Args:
        current_version: Server version, e.g. the session's external_version.
        min_version: Lowest supported version, empty for none.
        max_version: Highest supported version, empty for none.
        privilege_cloud_required: Operation exists only on Privilege Cloud.
        self_hosted_required: Operation exists only on self-hosted vaults.
        is_privilege_cloud: Whether the server is Privilege Cloud.

    Raises:
        VersionRequirementError: If the requirement is not met or a version
            string cannot be parsed.
    """
    if privilege_cloud_required and not is_privilege_cloud:
        msg = "this operation requires Privilege Cloud"
        raise VersionRequirementError(msg)
    if self_hosted_required and is_privilege_cloud:
        msg = "this operation requires Self-Hosted (not supported in Privilege Cloud)"
        raise VersionRequirementError(msg)

    try:
        current = Version.parse(current_version)
    except ValueError as exc:
        msg = f"failed to parse current version: {exc}"
        raise VersionRequirementError(msg) from exc
    try:
        requirement = VersionRequirement.from_strings(min_version, max_version)
    except ValueError as exc:
        msg = f"failed to create version requirement: {exc}"
        raise VersionRequirementError(msg) from exc

    if requirement.is_satisfied(current):
        return
    if min_version and max_version:
        msg = (
            f"this operation requires CyberArk version between {min_version} "
            f"and {max_version} (current: {current_version})"
        )
    elif min_version:
        msg = (
            f"this operation requires CyberArk version {min_version} or higher "
            f"(current: {current_version})"
        )
    else:
        msg = (
            f"this operation requires CyberArk version {max_version} or lower "
            f"(current: {current_version})"
        )
    raise VersionRequirementError(msg)


def assert_session_version(
    session: "Session",
    min_version: str = "",
    max_version: str = "",
    *,
    privilege_cloud_required: bool = False,
    self_hosted_required: bool = False,
) -> None:
    """Run :func:`assert_version_requirement` against a session's server."""
    assert_version_requirement(
        session.external_version,
        min_version,
        max_version,
        privilege_cloud_required=privilege_cloud_required,
        self_hosted_required=self_hosted_required,
        is_privilege_cloud=session.privilege_cloud,
    )
