'''
Commodity catalog for the seasonal inventory environment.

Holds the immutable per-commodity parameters, the global warehouse parameters
and the fixed order in which the capacity allocator visits commodities. The
order is given in the configuration as a predecessor chain; it is resolved once
at load time into an explicit tuple using a networkx graph.
'''

import logging
import math
import numbers
from dataclasses import MISSING, dataclass, field, fields
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import networkx as nx
import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Commodity:
    name: str
    unit_cost: float
    peak_demand_round: int
    min_expected_demand: int
    max_expected_demand: int
    demand_std: float
    storage_cost_per_unit: float
    unit_unmet_demand_cost: float
    predecessor: Optional[str] = None


@dataclass(frozen=True)
class GlobalParameters:
    rounds_per_cycle: int
    max_inventory: int
    base_order_cost: float = 0.0
    base_unmet_demand_cost: float = 0.0


@dataclass(frozen=True)
class CommodityCatalog:
    '''
    Read-only table of commodities plus the allocator order.

    Build it with `CommodityCatalog.build`, `catalog_from_config` or
    `load_catalog`; those run the load-time checks. `order` lists commodity
    names from the first commodity (no predecessor) to the last.
    '''
    params: GlobalParameters
    commodities: Mapping[str, Commodity]
    order: Tuple[str, ...] = field(default=())

    @classmethod
    def build(cls, params: GlobalParameters, commodities) -> 'CommodityCatalog':
        """ Validates parameters and resolves the predecessor chain into an order. """
        commodities = list(commodities)
        _validate_globals(params)
        table = {}
        for c in commodities:
            if c.name in table:
                raise ConfigurationError(f"Commodity {c.name!r} defined more than once")
            _validate_commodity(c)
            table[c.name] = c
        order = resolve_order(table)
        return cls(params=params, commodities=table, order=order)

    def __len__(self) -> int:
        return len(self.order)

    def __iter__(self) -> Iterator[Commodity]:
        return (self.commodities[name] for name in self.order)

    def __getitem__(self, name: str) -> Commodity:
        return self.commodities[name]

    def __contains__(self, name) -> bool:
        return name in self.commodities

    def index(self, name: str) -> int:
        return self.order.index(name)

    def chain_graph(self) -> nx.DiGraph:
        """ Returns the predecessor chain as a directed graph (edge: predecessor -> commodity). """
        return _chain_graph(self.commodities)


def _is_cost(value) -> bool:
    return (isinstance(value, numbers.Real) and not isinstance(value, bool)
            and math.isfinite(value) and value >= 0)


def _validate_globals(params: GlobalParameters):
    if not isinstance(params.rounds_per_cycle, numbers.Integral) or params.rounds_per_cycle <= 0:
        raise ConfigurationError(f"rounds_per_cycle must be a positive integer, got {params.rounds_per_cycle!r}")
    if not isinstance(params.max_inventory, numbers.Integral) or params.max_inventory <= 0:
        raise ConfigurationError(f"max_inventory must be a positive integer, got {params.max_inventory!r}")
    for attr in ('base_order_cost', 'base_unmet_demand_cost'):
        if not _is_cost(getattr(params, attr)):
            raise ConfigurationError(f"{attr} must be a finite number >= 0, got {getattr(params, attr)!r}")


def _validate_commodity(c: Commodity):
    for attr in ('unit_cost', 'demand_std', 'storage_cost_per_unit', 'unit_unmet_demand_cost'):
        if not _is_cost(getattr(c, attr)):
            raise ConfigurationError(f"Commodity {c.name!r}: {attr} must be a finite number >= 0")
    for attr in ('peak_demand_round', 'min_expected_demand', 'max_expected_demand'):
        if not isinstance(getattr(c, attr), numbers.Integral):
            raise ConfigurationError(f"Commodity {c.name!r}: {attr} must be an integer")
    if c.min_expected_demand > c.max_expected_demand:
        raise ConfigurationError(
            f"Commodity {c.name!r}: min_expected_demand ({c.min_expected_demand}) "
            f"> max_expected_demand ({c.max_expected_demand})")


def _chain_graph(commodities: Mapping[str, Commodity]) -> nx.DiGraph:
    graph = nx.DiGraph()
    graph.add_nodes_from(commodities)
    for name, c in commodities.items():
        if c.predecessor is None:
            continue
        if c.predecessor not in commodities:
            raise ConfigurationError(f"Commodity {name!r}: unknown predecessor {c.predecessor!r}")
        graph.add_edge(c.predecessor, name)
    return graph


def resolve_order(commodities: Mapping[str, Commodity]) -> Tuple[str, ...]:
    '''
    Follows the predecessor chain and returns commodity names in allocator order.

    The chain must be a single simple path covering every commodity exactly
    once: one commodity without a predecessor, no commodity named as the
    predecessor of two others, and no cycles.
    '''
    if not commodities:
        raise ConfigurationError("Catalog contains no commodities")
    graph = _chain_graph(commodities)

    if not nx.is_directed_acyclic_graph(graph):
        cycle = nx.find_cycle(graph)
        raise ConfigurationError(f"Predecessor chain contains a cycle: {cycle}")
    heads = [n for n in graph.nodes if graph.in_degree(n) == 0]
    if len(heads) != 1:
        raise ConfigurationError(f"Predecessor chain must have exactly one first commodity, found {sorted(heads)}")
    branching = [n for n in graph.nodes if graph.out_degree(n) > 1]
    if branching:
        raise ConfigurationError(f"Commodities named as predecessor more than once: {sorted(branching)}")

    order = tuple(nx.dfs_preorder_nodes(graph, source=heads[0]))
    if len(order) != len(commodities):
        missing = sorted(set(commodities) - set(order))
        raise ConfigurationError(f"Predecessor chain does not reach commodities {missing}")
    return order


def catalog_from_config(config: Mapping[str, Any]) -> CommodityCatalog:
    '''
    Builds a catalog from a plain dictionary.

    Expected layout::

        globals:
          rounds_per_cycle: 12
          max_inventory: 500
          base_order_cost: 10.0
          base_unmet_demand_cost: 5.0
        commodities:
          flour:
            unit_cost: 2.0
            ...
            predecessor: null
    '''
    if 'globals' not in config or 'commodities' not in config:
        raise ConfigurationError("Catalog config needs 'globals' and 'commodities' sections")
    params = GlobalParameters(**_pick(GlobalParameters, config['globals'], 'globals'))
    commodities = []
    for name, raw in config['commodities'].items():
        raw = dict(raw or {})
        raw.setdefault('predecessor', None)
        commodities.append(Commodity(name=str(name), **_pick(Commodity, raw, f"commodity {name!r}", skip=('name',))))
    catalog = CommodityCatalog.build(params, commodities)
    logger.info("Loaded catalog with %d commodities, order %s", len(catalog), catalog.order)
    return catalog


def _pick(cls, raw: Mapping[str, Any], where: str, skip=()) -> Dict[str, Any]:
    known = {f.name: f for f in fields(cls) if f.name not in skip}
    unknown = set(raw) - set(known)
    if unknown:
        raise ConfigurationError(f"{where}: unknown parameters {sorted(unknown)}")
    required = [name for name, f in known.items()
                if f.default is MISSING and f.default_factory is MISSING]
    missing = [name for name in required if name not in raw]
    if missing:
        raise ConfigurationError(f"{where}: missing parameters {missing}")
    return dict(raw)


def load_catalog(path) -> CommodityCatalog:
    """ Reads a YAML catalog file (same layout as `catalog_from_config`). """
    with open(path, 'r') as f:
        config = yaml.safe_load(f)
    if not isinstance(config, dict):
        raise ConfigurationError(f"{path}: catalog file must contain a mapping")
    return catalog_from_config(config)


DEFAULT_CATALOG_CONFIG = {
    'globals': {
        'rounds_per_cycle': 12,
        'max_inventory': 500,
        'base_order_cost': 20.0,
        'base_unmet_demand_cost': 10.0,
    },
    'commodities': {
        'flour': {'unit_cost': 1.5, 'peak_demand_round': 0, 'min_expected_demand': 20,
                  'max_expected_demand': 60, 'demand_std': 5.0,
                  'storage_cost_per_unit': 0.10, 'unit_unmet_demand_cost': 4.0,
                  'predecessor': None},
        'sugar': {'unit_cost': 1.0, 'peak_demand_round': 4, 'min_expected_demand': 10,
                  'max_expected_demand': 40, 'demand_std': 4.0,
                  'storage_cost_per_unit': 0.05, 'unit_unmet_demand_cost': 3.0,
                  'predecessor': 'flour'},
        'coffee': {'unit_cost': 6.0, 'peak_demand_round': 8, 'min_expected_demand': 5,
                   'max_expected_demand': 25, 'demand_std': 3.0,
                   'storage_cost_per_unit': 0.20, 'unit_unmet_demand_cost': 12.0,
                   'predecessor': 'sugar'},
    },
}


def default_catalog() -> CommodityCatalog:
    """ Small built-in catalog used by the environment when none is supplied. """
    return catalog_from_config(DEFAULT_CATALOG_CONFIG)
