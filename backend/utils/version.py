import os
from importlib import metadata

_VERSION_FILE = os.path.join(os.path.dirname(__file__), '..', '..', 'VERSION')
_DISTRIBUTION = 'cluster-upgrade'


def get_app_version() -> str:
    """Release this server is being upgraded to: VERSION file, then package metadata, else 'dev'"""
    try:
        with open(_VERSION_FILE) as f:
            version = f.read().strip()
        if version:
            return version.removeprefix('v')
    except OSError:
        pass

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return 'dev'
