"""Dependencies a tool action runs against."""

from dataclasses import dataclass, field

import requests

from creator_toolkit.platform.config import Settings
from creator_toolkit.platform.protocols import (
    CreditLedgerPort,
    JobStoragePort,
    ObjectStoragePort,
    VendorClient,
)


@dataclass
class ToolContext:
    """Bundle of ports handed to every tool action and to ``run_job``."""

    jobs: JobStoragePort
    credits: CreditLedgerPort
    objects: ObjectStoragePort
    vendors: dict[str, VendorClient]
    session: requests.Session = field(default_factory=requests.Session)
    settings: Settings = field(default_factory=Settings)
    # Closed with the context, e.g. the TinyDB file handle.
    resources: list = field(default_factory=list)

    def vendor(self, name: str) -> VendorClient:
        try:
            return self.vendors[name]
        except KeyError:
            raise KeyError(f"No client configured for vendor '{name}'") from None

    def close(self) -> None:
        for resource in self.resources:
            resource.close()
        self.session.close()
