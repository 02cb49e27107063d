"""Backend collaborator adapters."""

from personaengine.backend.client import (
    BackendSyncError,
    HttpPersonaBackend,
    InMemoryPersonaBackend,
    PersonaBackend,
    ProfilePayload,
    create_backend,
    default_profile,
)

__all__ = [
    "BackendSyncError",
    "HttpPersonaBackend",
    "InMemoryPersonaBackend",
    "PersonaBackend",
    "ProfilePayload",
    "create_backend",
    "default_profile",
]
