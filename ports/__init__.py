from .documents import DocumentStorePort
from .identity import IdentityListener, IdentityProviderPort
from .objects import ObjectStorePort

__all__ = [
    "DocumentStorePort",
    "IdentityListener",
    "IdentityProviderPort",
    "ObjectStorePort",
]
