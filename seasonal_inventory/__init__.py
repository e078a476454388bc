'''
Seasonal multi-commodity inventory control with a shared-capacity warehouse.
'''

from .allocation import allocate_resupply
from .catalog import (Commodity, CommodityCatalog, GlobalParameters, catalog_from_config,
                      default_catalog, load_catalog)
from .demand import cyclic_mean, expected_demand_curve, sample_demand
from .env import SeasonalInventoryEnv
from .errors import ConfigurationError, InvalidActionError
from .reward import CostBreakdown, compute_costs, compute_reward
from .transition import StepResult, WarehouseState, step, transition
from .validation import validate_action

__version__ = "0.1.0"
