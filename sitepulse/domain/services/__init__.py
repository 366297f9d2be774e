# Domain Services
from .interval_resolver import IntervalResolver, Resolution
from .threshold_evaluator import ThresholdEvaluator, metric_status
from .rollup_calculator import RollupCalculator
from .power_calculator import PowerCalculator, PowerResult, PowerSource, is_valid_measurement
from .energy_breakdown import EnergyBreakdown, compute_breakdown

__all__ = [
    'IntervalResolver',
    'Resolution',
    'ThresholdEvaluator',
    'metric_status',
    'RollupCalculator',
    'PowerCalculator',
    'PowerResult',
    'PowerSource',
    'is_valid_measurement',
    'EnergyBreakdown',
    'compute_breakdown',
]
