"""Static reference data.

Data that doesn't change with API calls: quick-select search presets.

Adding a new module:
1. Create ``reference/{name}.py`` with constants/dataclasses
2. Re-export from this ``__init__.py``
"""

from natura_map.reference.presets import DEFAULT_PRESET as DEFAULT_PRESET
from natura_map.reference.presets import PRESETS as PRESETS
from natura_map.reference.presets import Preset as Preset
from natura_map.reference.presets import get_preset as get_preset
