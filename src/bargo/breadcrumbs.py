from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel

from .paths import Flavour, target_dir
from .utils import write_text

logger = logging.getLogger(__name__)


class BreadcrumbKey(str, Enum):
    CLASS_HASH = "class_hash"
    CONTRACT_ADDRESS = "contract_address"


BREADCRUMB_FILES: Dict[BreadcrumbKey, str] = {
    BreadcrumbKey.CLASS_HASH: ".bargo_class_hash",
    BreadcrumbKey.CONTRACT_ADDRESS: ".bargo_contract_address",
}

# Keys each flavour is allowed to persist.
FLAVOUR_KEYS: Dict[Flavour, tuple[BreadcrumbKey, ...]] = {
    Flavour.BB: (),
    Flavour.EVM: (BreadcrumbKey.CONTRACT_ADDRESS,),
    Flavour.STARKNET: (BreadcrumbKey.CLASS_HASH, BreadcrumbKey.CONTRACT_ADDRESS),
}


class BreadcrumbState(BaseModel):
    class_hash: Optional[str] = None
    contract_address: Optional[str] = None


class DeployState(str, Enum):
    NO_CLASS_HASH = "no_class_hash"
    DECLARED = "declared"
    DEPLOYED = "deployed"


class BreadcrumbStore:
    def __init__(self, flavour: Flavour, root: Optional[Path] = None) -> None:
        self.flavour = flavour
        self.directory = (root or Path(".")) / target_dir(flavour)

    def _check_key(self, key: BreadcrumbKey) -> None:
        if key not in FLAVOUR_KEYS[self.flavour]:
            raise KeyError(f"{key.value} is not a {self.flavour.value} breadcrumb")

    def path_for(self, key: BreadcrumbKey) -> Path:
        self._check_key(key)
        return self.directory / BREADCRUMB_FILES[key]

    def read(self, key: BreadcrumbKey) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        value = path.read_text(encoding="utf-8").strip()
        return value or None

    def write(self, key: BreadcrumbKey, value: str) -> Path:
        path = self.path_for(key)
        write_text(path, value)
        logger.debug("Saved %s breadcrumb to %s", key.value, path)
        return path

    def clear(self, key: BreadcrumbKey) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def snapshot(self) -> BreadcrumbState:
        values = {key.value: self.read(key) for key in FLAVOUR_KEYS[self.flavour]}
        return BreadcrumbState(**values)


def deploy_state(state: BreadcrumbState) -> DeployState:
    if state.contract_address:
        return DeployState.DEPLOYED
    if state.class_hash:
        return DeployState.DECLARED
    return DeployState.NO_CLASS_HASH
