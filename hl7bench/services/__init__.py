"""Supporting services."""

from .profile_service import ServerProfile, ServerProfileStore, DEFAULT_PROFILES

__all__ = [
    'ServerProfile',
    'ServerProfileStore',
    'DEFAULT_PROFILES',
]
