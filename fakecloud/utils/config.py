import sys
import yaml
from typing import Dict, Any

CONFIG: Dict[str, Any] = {}

DEFAULTS: Dict[str, Any] = {
    'elb': {'host': 'localhost', 'port': 0, 'dns_suffix': 'us-east-1.elb.amazonaws.com'},
    'route53': {'host': 'localhost', 'port': 0},
    'logging': {'level': 'INFO', 'file': None},
}

def load_config(path: str = 'config.yaml') -> None:
    """Loads configuration from a YAML file."""
    global CONFIG
    try:
        with open(path, 'r') as f:
            CONFIG = yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"Error: Configuration file '{path}' not found.", file=sys.stderr)
        CONFIG = {}
    except yaml.YAMLError as e:
        print(f"Error parsing configuration file '{path}': {e}", file=sys.stderr)
        CONFIG = {}

def get_config() -> Dict[str, Any]:
    """Returns the loaded configuration."""
    if not CONFIG:
        load_config() # Load if not already loaded
    return CONFIG

def get_section(name: str) -> Dict[str, Any]:
    """Returns one section of the configuration with defaults filled in."""
    section = dict(DEFAULTS.get(name, {}))
    section.update(get_config().get(name) or {})
    return section
