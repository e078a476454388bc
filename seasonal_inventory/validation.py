'''
Feasibility check for resupply actions, run before any state changes.
'''

import math
import numbers
from typing import Dict, Mapping

from .catalog import CommodityCatalog
from .errors import InvalidActionError


def is_whole_number(value) -> bool:
    """ True for finite integral reals (`3`, `3.0`, `np.int64(3)`); bools are not amounts. """
    return (isinstance(value, numbers.Real) and not isinstance(value, bool)
            and math.isfinite(value) and int(value) == value)


def validate_action(catalog: CommodityCatalog, action: Mapping[str, int]) -> Dict[str, int]:
    '''
    Checks a resupply action and returns it as a full {name: int} mapping.

    Rejects unknown commodities, non-integral or negative amounts, and a total
    above `max_inventory`. Passing does not guarantee every unit is admitted:
    the allocator may still truncate once leftover stock is known.
    '''
    unknown = [name for name in action if name not in catalog]
    if unknown:
        raise InvalidActionError(f"Unknown commodities in action: {sorted(map(str, unknown))}")

    resupply = {}
    for name in catalog.order:
        value = action.get(name, 0)
        if not is_whole_number(value):
            raise InvalidActionError(f"Resupply for {name!r} must be an integer, got {value!r}")
        value = int(value)
        if value < 0:
            raise InvalidActionError(f"Resupply for {name!r} must be >= 0, got {value}")
        resupply[name] = value

    total = sum(resupply.values())
    if total > catalog.params.max_inventory:
        raise InvalidActionError(
            f"Total resupply {total} exceeds warehouse capacity {catalog.params.max_inventory}")
    return resupply
