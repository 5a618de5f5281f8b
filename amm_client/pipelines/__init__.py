"""
Operation pipelines for the AMM.
"""

from .amm_pipeline import AmmClient, parse_pool_id
from .base import PipelineRun, PipelineStage, PipelineStateError
from .results import (
    AddLiquidityResult,
    CreatePoolResult,
    OperationResult,
    RemoveLiquidityResult,
    SwapResult,
)

__all__ = [
    'AmmClient',
    'parse_pool_id',
    'PipelineRun',
    'PipelineStage',
    'PipelineStateError',
    'OperationResult',
    'CreatePoolResult',
    'AddLiquidityResult',
    'RemoveLiquidityResult',
    'SwapResult',
]
