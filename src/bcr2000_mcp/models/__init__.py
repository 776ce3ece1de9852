"""Data models for controls and device control catalogs."""

from .controls import Control, ControlCatalog, Role
from .bcr2000 import bcr2000_catalog
