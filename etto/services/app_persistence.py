from __future__ import annotations

import os
import sys
from pathlib import Path

from etto.domain.doctrine import Doctrine
from etto.domain.layout_store import LayoutStore
from etto.domain.roster_store import OwnedStore


class AppPersistence:
    """
    Resolves the per-user data directory and the files stored in it:
      owned_units.json, team_layout.json, doctrine.json, app_settings.json
    """

    def __init__(self) -> None:
        self.data_dir = self._primary_data_dir()
        self.owned_path = self.data_dir / "owned_units.json"
        self.layout_path = self.data_dir / "team_layout.json"
        self.doctrine_path = self.data_dir / "doctrine.json"
        self.settings_path = self.data_dir / "app_settings.json"

    def _runtime_app_name(self) -> str:
        if getattr(sys, "frozen", False):
            return "ETTO"
        return "ETTO-dev"

    def _primary_data_dir(self) -> Path:
        override_dir = (os.environ.get("ETTO_DATA_DIR") or "").strip()
        if override_dir:
            return Path(override_dir)

        app_name = self._runtime_app_name()
        base_dir = (
            (os.environ.get("LOCALAPPDATA") or "").strip()
            or (os.environ.get("APPDATA") or "").strip()
        )
        if base_dir:
            return Path(base_dir) / app_name
        return Path.home() / ".config" / app_name

    def load_owned(self) -> OwnedStore:
        return OwnedStore.load(self.owned_path)

    def save_owned(self, store: OwnedStore) -> None:
        store.save(self.owned_path)

    def load_layout(self) -> LayoutStore:
        return LayoutStore.load(self.layout_path)

    def save_layout(self, store: LayoutStore) -> None:
        store.save(self.layout_path)

    def load_doctrine(self) -> Doctrine:
        return Doctrine.load(self.doctrine_path)
