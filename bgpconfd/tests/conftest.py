"""
Pytest configuration file

Adds the project root to the Python path so tests can import modules,
and provides config file fixtures.
"""
import sys
import os

import pytest

# Add the project root to the path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


BASE_YAML = """\
global:
  config:
    as: 65000
    router-id: 10.0.0.1
peer-groups:
  - config:
      peer-group-name: upstream
      peer-as: 65100
    timers:
      config:
        hold-time: 30
neighbors:
  - config:
      neighbor-address: 10.0.0.2
      peer-group: upstream
  - config:
      neighbor-address: 10.0.0.3
      peer-as: 65000
defined-sets:
  prefix-sets:
    - prefix-set-name: ps1
      prefix-list:
        - ip-prefix: 192.0.2.0/24
          masklength-range: 24..32
policy-definitions:
  - name: pd1
    statements:
      - conditions:
          match-prefix-set:
            prefix-set: ps1
        actions:
          route-disposition: reject-route
"""


@pytest.fixture
def base_yaml():
    """Baseline YAML config text"""
    return BASE_YAML


@pytest.fixture
def yaml_config(tmp_path):
    """Baseline YAML config written to disk"""
    path = tmp_path / "bgpd.yaml"
    path.write_text(BASE_YAML)
    return path
