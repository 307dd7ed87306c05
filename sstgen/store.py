"""
Saved configurations, keyed by account.
"""

import json
import logging
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .errors import StorageError, ValidationError
from .ids import is_valid_id, new_config_id
from .models import DeploymentConfig, SavedConfig
from .settings import get_max_saved_configs, get_sstgen_home

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ConfigStore(ABC):
    """Named deployment configs per account, oldest first."""

    def __init__(self, max_per_account: Optional[int] = None):
        self.max_per_account = max_per_account or get_max_saved_configs()
        self._lock = threading.Lock()

    @abstractmethod
    def _load(self, account: str) -> List[SavedConfig]:
        pass

    @abstractmethod
    def _dump(self, account: str, configs: List[SavedConfig]) -> None:
        pass

    def save(self, account: str, name: str, repository: str, config: DeploymentConfig) -> SavedConfig:
        """
        Save a configuration under a display name.

        When the account is over its retention limit the oldest entries are
        evicted.
        """
        if not (name or "").strip():
            raise ValidationError("A saved configuration needs a name")

        now = _now()
        saved = SavedConfig(
            id=new_config_id(),
            name=name.strip(),
            repository=repository,
            config=config,
            created_at=now,
            updated_at=now,
        )

        with self._lock:
            configs = self._load(account)
            configs.append(saved)
            evicted = len(configs) - self.max_per_account
            if evicted > 0:
                logger.info(f"Evicting {evicted} oldest saved config(s) for {account}")
                configs = configs[evicted:]
            self._dump(account, configs)

        logger.info(f"Saved config {saved.id} ({saved.name}) for {account}")
        return saved

    def list(self, account: str) -> List[SavedConfig]:
        with self._lock:
            return self._load(account)

    def get(self, account: str, config_id: str) -> Optional[SavedConfig]:
        if not is_valid_id(config_id, "c"):
            return None
        for saved in self.list(account):
            if saved.id == config_id:
                return saved
        return None


class InMemoryConfigStore(ConfigStore):
    """Process-local store; contents are lost on restart."""

    def __init__(self, max_per_account: Optional[int] = None):
        super().__init__(max_per_account)
        self._configs: Dict[str, List[SavedConfig]] = {}

    def _load(self, account: str) -> List[SavedConfig]:
        return list(self._configs.get(account, []))

    def _dump(self, account: str, configs: List[SavedConfig]) -> None:
        self._configs[account] = list(configs)


class FileConfigStore(ConfigStore):
    """
    One JSON file per account under ``<home>/configs``.

    Writes go to a temporary file that is renamed over the old one.
    """

    def __init__(self, root: Optional[Path] = None, max_per_account: Optional[int] = None):
        super().__init__(max_per_account)
        self.root = Path(root) if root else get_sstgen_home() / "configs"

    def _path(self, account: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]", "_", account or "")
        if not safe.strip("._"):
            raise ValidationError(f"Invalid account identifier: {account!r}")
        return self.root / f"{safe}.json"

    def _load(self, account: str) -> List[SavedConfig]:
        path = self._path(account)
        if not path.exists():
            return []
        try:
            with open(path, "r") as f:
                data = json.load(f)
            return [SavedConfig.from_dict(item) for item in data]
        except (OSError, json.JSONDecodeError, KeyError, ValidationError) as e:
            logger.error(f"Could not read saved configs from {path}: {e}")
            raise StorageError("Failed to read saved configurations")

    def _dump(self, account: str, configs: List[SavedConfig]) -> None:
        path = self._path(account)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w") as f:
                json.dump([c.to_dict() for c in configs], f, indent=2)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error(f"Could not write saved configs to {path}: {e}")
            raise StorageError("Failed to save configuration")
