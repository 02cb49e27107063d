"""Persona backend collaborator: where profiles come from and points go to.

The engine treats the backend as authoritative for learned weights and
message counts, and as a best-effort sink for point allocations. Nothing in
the engine waits on a push succeeding.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from personaengine.config import EngineSettings, get_engine_settings
from personaengine.engine.allocation import (
    DEFAULT_RULES,
    AllocationRules,
    presets_for,
    seed_weights,
)
from personaengine.model.state import PersonaProfile, PointAllocation
from personaengine.model.traits import TraitId, WeightVector

logger = logging.getLogger(__name__)


class BackendSyncError(Exception):
    """Raised when the backend cannot be read from or written to."""


class ProfilePayload(BaseModel):
    """Wire shape of a persona profile."""

    id: str
    name: str
    dominant_trait: TraitId
    secondary_trait: TraitId
    instinct_weight: float = Field(ge=0.0, le=1.0)
    logic_weight: float = Field(ge=0.0, le=1.0)
    psyche_weight: float = Field(ge=0.0, le=1.0)
    instinct_points: int
    logic_points: int
    psyche_points: int
    message_count: int = Field(default=0, ge=0)
    is_active: bool = False

    def to_profile(self) -> PersonaProfile:
        return PersonaProfile(
            id=self.id,
            name=self.name,
            dominant_trait=self.dominant_trait,
            secondary_trait=self.secondary_trait,
            points=PointAllocation(
                instinct=self.instinct_points,
                logic=self.logic_points,
                psyche=self.psyche_points,
            ),
            weights=WeightVector(
                instinct=self.instinct_weight,
                logic=self.logic_weight,
                psyche=self.psyche_weight,
            ),
            message_count=self.message_count,
            is_active=self.is_active,
        )


class PersonaBackend(ABC):
    """Interface every backend adapter implements."""

    @abstractmethod
    def fetch_profile(self) -> PersonaProfile:
        """Return the active persona profile.

        Raises:
            BackendSyncError: If the profile cannot be loaded.
        """
        raise NotImplementedError

    @abstractmethod
    def push_points(self, allocation: PointAllocation) -> None:
        """Store the active profile's point allocation.

        Raises:
            BackendSyncError: If the write fails.
        """
        raise NotImplementedError

    @abstractmethod
    def set_dominant_trait(self, trait: TraitId) -> None:
        """Store the manually selected dominant trait.

        Raises:
            BackendSyncError: If the write fails.
        """
        raise NotImplementedError


class InMemoryPersonaBackend(PersonaBackend):
    """Backend kept in process memory.

    Serves the API when no backend URL is configured, and doubles as a test
    double.
    """

    def __init__(self, profile: PersonaProfile | None = None) -> None:
        self.profile = profile or default_profile()
        self.pushes: list[PointAllocation] = []

    def fetch_profile(self) -> PersonaProfile:
        return self.profile

    def push_points(self, allocation: PointAllocation) -> None:
        self.pushes.append(allocation)
        self.profile.points = allocation

    def set_dominant_trait(self, trait: TraitId) -> None:
        self.profile.dominant_trait = trait


_TRANSIENT = (httpx.ConnectError, httpx.TimeoutException, httpx.RemoteProtocolError)


class HttpPersonaBackend(PersonaBackend):
    """JSON-over-HTTP backend adapter.

    Endpoints (relative to ``backend_url``):
        GET  /persona/active           -> ProfilePayload
        PUT  /persona/active/points    <- {"instinct", "logic", "psyche"}
        PUT  /persona/active/dominant  <- {"trait"}

    Transient transport errors are retried with exponential backoff; HTTP
    error statuses are not.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_engine_settings()
        if not self._settings.backend_url:
            raise ValueError("BACKEND_URL is required for the HTTP backend")
        headers = {"Accept": "application/json"}
        if self._settings.backend_api_key:
            token = self._settings.backend_api_key.get_secret_value()
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=self._settings.backend_url,
            timeout=self._settings.backend_timeout,
            headers=headers,
            transport=transport,
        )
        self._request = retry(
            retry=retry_if_exception_type(_TRANSIENT),
            stop=stop_after_attempt(self._settings.backend_max_retries),
            wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
            reraise=True,
        )(self._send)

    def close(self) -> None:
        self._client.close()

    def _send(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        response = self._client.request(method, path, json=payload)
        response.raise_for_status()
        return response.json() if response.content else None

    def _call(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            return self._request(method, path, payload)
        except httpx.HTTPStatusError as e:
            logger.error("Backend %s %s failed: HTTP %s", method, path, e.response.status_code)
            raise BackendSyncError(f"HTTP error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Backend %s %s failed: %s", method, path, e)
            raise BackendSyncError(f"Cannot reach backend: {e}") from e

    def fetch_profile(self) -> PersonaProfile:
        data = self._call("GET", "/persona/active")
        try:
            return ProfilePayload.model_validate(data).to_profile()
        except ValidationError as e:
            raise BackendSyncError(f"Malformed profile payload: {e}") from e

    def push_points(self, allocation: PointAllocation) -> None:
        self._call("PUT", "/persona/active/points", allocation.as_dict())

    def set_dominant_trait(self, trait: TraitId) -> None:
        self._call("PUT", "/persona/active/dominant", {"trait": trait.value})


def default_profile(
    trait: TraitId = TraitId.LOGIC, rules: AllocationRules = DEFAULT_RULES
) -> PersonaProfile:
    """A fresh profile built from the preset for ``trait`` under ``rules``."""
    preset = presets_for(rules)[trait.value]
    secondary = TraitId.PSYCHE if trait is TraitId.LOGIC else TraitId.LOGIC
    return PersonaProfile(
        id=str(uuid.uuid4()),
        name=trait.value.capitalize(),
        dominant_trait=trait,
        secondary_trait=secondary,
        points=preset.allocation,
        weights=seed_weights(trait, secondary),
        is_active=True,
    )


def create_backend(settings: EngineSettings | None = None) -> PersonaBackend:
    """HTTP backend when a URL is configured, in-memory otherwise."""
    settings = settings or get_engine_settings()
    if settings.backend_url:
        logger.info("Using HTTP persona backend at %s", settings.backend_url)
        return HttpPersonaBackend(settings)
    logger.info("No BACKEND_URL configured; using in-memory persona backend")
    rules = AllocationRules(budget=settings.point_budget)
    return InMemoryPersonaBackend(default_profile(rules=rules))
