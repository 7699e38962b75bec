# Importing the adapters registers them by name.
from . import firebase as _firebase  # noqa: F401
from . import local as _local  # noqa: F401
