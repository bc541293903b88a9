"""
Core data models for the module logger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from .time_utils import ensure_utc, format_timestamp, parse_timestamp, utcnow


@dataclass(frozen=True)
class ModuleActivation:
    """A user loading one package version, with its debounce expiration."""

    username: str
    package_name: str
    package_version: str
    timestamp: datetime
    expiration: datetime
    module_file_path: str = ""

    @classmethod
    def create(
        cls,
        username: str,
        package_name: str,
        package_version: str,
        expire_seconds: int,
        module_file_path: str = "",
        now: Optional[datetime] = None,
    ) -> "ModuleActivation":
        """Build an activation stamped at ``now`` that expires after ``expire_seconds``.

        Args:
            username: User who loaded the module
            package_name: Package name
            package_version: Package version
            expire_seconds: Debounce window length in seconds
            module_file_path: Path of the module file that was loaded
            now: Creation instant, defaults to the current time

        Returns:
            New ModuleActivation
        """
        timestamp = ensure_utc(now) if now is not None else utcnow()
        return cls(
            username=username,
            package_name=package_name,
            package_version=package_version,
            timestamp=timestamp,
            expiration=timestamp + timedelta(seconds=expire_seconds),
            module_file_path=module_file_path,
        )

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.username, self.package_name, self.package_version)

    def is_expired(self, now: datetime) -> bool:
        return not self.expiration > ensure_utc(now)

    def to_dict(self) -> Dict[str, str]:
        return {
            "username": self.username,
            "package_name": self.package_name,
            "package_version": self.package_version,
            "module_file_path": self.module_file_path,
            "timestamp": format_timestamp(self.timestamp),
            "expiration": format_timestamp(self.expiration),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ModuleActivation":
        """Rebuild an activation from its persisted form.

        Raises:
            ValueError: if a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")

        values = {}
        for name in ("username", "package_name", "package_version"):
            value = data.get(name)
            if not isinstance(value, str):
                raise ValueError(f"missing or invalid field '{name}'")
            values[name] = value

        module_file_path = data.get("module_file_path") or ""
        if not isinstance(module_file_path, str):
            raise ValueError("invalid field 'module_file_path'")

        for name in ("timestamp", "expiration"):
            parsed = parse_timestamp(data.get(name))
            if parsed is None:
                raise ValueError(f"missing or invalid timestamp '{name}'")
            values[name] = parsed

        return cls(module_file_path=module_file_path, **values)


@dataclass
class PackageCount:
    """How many times a user loaded one package version."""

    name: str
    version: str
    count: int = 0


@dataclass
class UserPackages:
    """Package counts for a single user."""

    name: str
    packages: List[PackageCount] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "packages": [
                {"name": p.name, "version": p.version, "count": p.count}
                for p in self.packages
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "UserPackages":
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            raise ValueError("user entry needs a string 'name'")
        packages = []
        for pkg in data.get("packages") or []:
            if not isinstance(pkg, dict):
                raise ValueError("package entry must be an object")
            name = pkg.get("name")
            version = pkg.get("version")
            count = pkg.get("count", 0)
            if not isinstance(name, str) or not isinstance(version, str):
                raise ValueError("package entry needs string 'name' and 'version'")
            if not isinstance(count, int) or isinstance(count, bool):
                raise ValueError(f"invalid count for package '{name}'")
            packages.append(PackageCount(name=name, version=version, count=count))
        return cls(name=data["name"], packages=packages)
