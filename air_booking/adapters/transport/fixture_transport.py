"""Fixture transport adapter.

Replays decoded vendor responses from JSON files, one file per
operation (``<fixtures_dir>/<operation>.json``). A document with a
top-level ``fault`` key stands for a vendor fault envelope and is raised
as TransportFault. Every call is recorded so tests can assert on the
exchange.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

from ...config import TransportConfig, get_config
from ...domain.errors import ConfigurationError
from ...ports.transport import Operation, RawDocument, TransportFault

FAULT_KEY = "fault"


@dataclass
class FixtureTransport:
    """TransportPort reading responses from a fixtures directory.

    Attributes:
        config: Transport configuration (fixtures location)
    """

    config: TransportConfig = field(default_factory=lambda: get_config().transport)
    calls: List[Tuple[Operation, Dict[str, Any]]] = field(default_factory=list, repr=False)

    _documents: Dict[Operation, RawDocument] = field(default_factory=dict, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @property
    def fixtures_dir(self) -> Path:
        return self.config.fixtures_dir

    def fixture_path(self, operation: Operation) -> Path:
        return self.fixtures_dir / f"{operation.value}.json"

    def _load(self, operation: Operation) -> RawDocument:
        if operation in self._documents:
            return self._documents[operation]

        path = self.fixture_path(operation)
        try:
            with path.open(encoding="utf-8") as handle:
                document = json.load(handle)
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"No fixture for operation {operation.value} in {self.fixtures_dir}",
                cause=e,
                setting_name="transport.fixtures_dir",
            ) from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Fixture {path.name} is not valid JSON",
                cause=e,
                setting_name="transport.fixtures_dir",
            ) from e

        self._documents[operation] = document
        self._logger.debug("Fixture loaded", extra={"operation": operation.value, "path": str(path)})
        return document

    def call(self, operation: Operation, payload: Mapping[str, Any]) -> RawDocument:
        """Return the stored response for an operation.

        Raises:
            TransportFault: When the fixture holds a fault envelope.
            ConfigurationError: When the fixture is missing or unreadable.
        """
        self.calls.append((operation, dict(payload)))
        document = self._load(operation)
        if FAULT_KEY in document:
            self._logger.info("Replaying vendor fault", extra={"operation": operation.value})
            raise TransportFault(operation, document[FAULT_KEY])
        return document
