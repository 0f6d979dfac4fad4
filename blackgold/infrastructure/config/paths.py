# blackgold/infrastructure/config/paths.py
import os

_PACKAGE_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEFAULT_MACHINE_CONFIG = os.path.join(_PACKAGE_ROOT, "application", "config", "machines", "black_gold.yaml")
MACHINE_SCHEMA = os.path.join(_PACKAGE_ROOT, "infrastructure", "config", "schemas", "machine_schema.json")
