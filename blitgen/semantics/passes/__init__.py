"""Analysis passes: declaration collection and blittability evaluation."""
from blitgen.semantics.passes.blittable import Mark, VerdictCache, evaluate, is_builtin_blittable
from blitgen.semantics.passes.collect import TypeUniverse, collect_universe

__all__ = [
    'Mark',
    'VerdictCache',
    'evaluate',
    'is_builtin_blittable',
    'TypeUniverse',
    'collect_universe',
]
