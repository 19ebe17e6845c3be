from upgrade.catalog import AbstractUpgradeCatalog
from upgrade.catalog_252 import UpgradeCatalog252

__all__ = ['AbstractUpgradeCatalog', 'UpgradeCatalog252']
