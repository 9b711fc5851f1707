"""Core of glasstrace: input normalization and plan dispatch."""

from glasstrace.core.bundles import BundleSource, DistributionBundles, StaticBundles
from glasstrace.core.dispatcher import PlanDispatcher, match_spec_for, scope_flags
from glasstrace.core.normalizer import ensure_pattern, ensure_scope, flatten, normalize

__all__ = [
    "BundleSource",
    "DistributionBundles",
    "PlanDispatcher",
    "StaticBundles",
    "ensure_pattern",
    "ensure_scope",
    "flatten",
    "match_spec_for",
    "normalize",
    "scope_flags",
]
