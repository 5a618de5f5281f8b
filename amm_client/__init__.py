"""
Client-side interaction layer for a constant-product AMM.

Example:
    from amm_client import AmmClient, get_config

    client = AmmClient.from_config(get_config())
    pool = await client.get_pool(pool_id)
"""

from .config import get_config
from .errors import (
    AmmClientError,
    CallRevertedError,
    CapabilityError,
    LogRangeError,
    OnChainRevertError,
    PoolNotFoundError,
    TransportError,
    UserDeclinedError,
)
from .pipelines import AmmClient, PipelineRun, PipelineStage
from .pool_types import AllowanceState, Pool, PoolCreatedEvent

__version__ = "0.1.0"

__all__ = [
    'AmmClient',
    'PipelineRun',
    'PipelineStage',
    'get_config',
    'AmmClientError',
    'CallRevertedError',
    'CapabilityError',
    'LogRangeError',
    'OnChainRevertError',
    'PoolNotFoundError',
    'TransportError',
    'UserDeclinedError',
    'AllowanceState',
    'Pool',
    'PoolCreatedEvent',
]
