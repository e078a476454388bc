'''
Shared-capacity resupply allocation.

Commodities are served strictly in catalog order. Each one gets its full
request while the running total still fits under the warehouse bound; once it
does not, it gets whatever room is left (possibly nothing) and every later
commodity competes for the remainder.
'''

from typing import Dict, Mapping, Sequence


def allocate_resupply(order: Sequence[str],
                      resupply: Mapping[str, int],
                      after_demand_sum: int,
                      max_inventory: int) -> Dict[str, int]:
    '''
    Returns the number of units admitted for each commodity.

    Args:
        order: commodity names in allocator order.
        resupply: validated requested units; missing names request 0.
        after_demand_sum: total stock left across all commodities after demand.
        max_inventory: shared warehouse capacity.

    The admission test is strict: `after_demand_sum + request + cum_prev < max_inventory`.
    A request landing exactly on the bound falls through to the clamp branch,
    which still grants it in full.
    '''
    granted = {}
    cum_prev = 0
    for name in order:
        request = resupply.get(name, 0)
        if after_demand_sum + request + cum_prev < max_inventory:
            cum = request + cum_prev
        else:
            remaining = max(0, max_inventory - (cum_prev + after_demand_sum))
            cum = remaining + cum_prev
        granted[name] = cum - cum_prev
        cum_prev = cum
    return granted
