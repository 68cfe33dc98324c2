"""
Capability discovery for optional companion features of the host.

Everything that reads loosely-typed host data lives behind ``CapabilityProvider``.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

from loguru import logger


class CapabilityProvider(Protocol):
    """Narrow capability query interface."""

    def has_capability(self, name: str) -> bool: ...

    def get_capability_version(self, name: str) -> Optional[str]: ...


@dataclass(frozen=True)
class CapabilityStatus:
    name: str
    installed: bool
    enabled: bool
    version: Optional[str] = None


class StaticCapabilities:
    """Capabilities from a fixed mapping of name to version (None for unversioned)."""

    def __init__(self, capabilities: Optional[dict[str, Optional[str]]] = None):
        self._capabilities = dict(capabilities or {})

    def has_capability(self, name: str) -> bool:
        return name in self._capabilities

    def get_capability_version(self, name: str) -> Optional[str]:
        return self._capabilities.get(name)


class ObsidianPluginCapabilities:
    """Capabilities of an Obsidian vault, read from its community plugin configuration.

    A plugin is installed when ``.obsidian/plugins/<id>/manifest.json`` exists and
    enabled when its id is listed in ``.obsidian/community-plugins.json``.
    """

    def __init__(self, vault_root: str | Path, config_dir: str = ".obsidian"):
        self.config_path = Path(vault_root) / config_dir

    def _read_json(self, path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot read {path}: {e}")
            return None

    def enabled_plugins(self) -> set[str]:
        data = self._read_json(self.config_path / "community-plugins.json")
        if not isinstance(data, list):
            return set()
        return {item for item in data if isinstance(item, str)}

    def manifest(self, plugin_id: str) -> Optional[dict[str, Any]]:
        data = self._read_json(self.config_path / "plugins" / plugin_id / "manifest.json")
        return data if isinstance(data, dict) else None

    def is_installed(self, plugin_id: str) -> bool:
        return self.manifest(plugin_id) is not None

    def has_capability(self, name: str) -> bool:
        return name in self.enabled_plugins()

    def get_capability_version(self, name: str) -> Optional[str]:
        if not self.has_capability(name):
            return None
        manifest = self.manifest(name) or {}
        version = manifest.get("version")
        return str(version) if version is not None else None

    def status(self, name: str) -> CapabilityStatus:
        return CapabilityStatus(
            name=name,
            installed=self.is_installed(name),
            enabled=self.has_capability(name),
            version=self.get_capability_version(name),
        )
