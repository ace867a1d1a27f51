"""Retry layer for clustered document-store clients."""

from .bucket import Pail, RetryingCluster, RetryingQueryIndexManager
from .budget import RetryBudget
from .classify import DEFAULT_CLASSIFIER, ErrorClassifier, FailureReason, is_connect_error
from .config import RetrySettings, load_settings
from .context import (
    ClusterRetryContext,
    CollectionRetryContext,
    QueryIndexManagerRetryContext,
    RetryContext,
    RetryState,
    merge_options,
    new_cluster_retry_context,
    new_collection_retry_context,
    new_query_index_manager_retry_context,
)
from .errors import PailError, RetryLimitBreachedError
from .logging import configure_logging, install_null_handler
from .models import BulkKind, BulkOp, DocumentFlag, MultiResult, SubdocFlag, SubdocKind, SubdocOp
from .reasons import STOP, RetryAction, RetryReason, RetryRequest, RetryStrategy
from .subdoc import LookupInBuilder, MutateInBuilder

install_null_handler()

__all__ = [
    "BulkKind",
    "BulkOp",
    "ClusterRetryContext",
    "CollectionRetryContext",
    "DEFAULT_CLASSIFIER",
    "DocumentFlag",
    "ErrorClassifier",
    "FailureReason",
    "LookupInBuilder",
    "MultiResult",
    "MutateInBuilder",
    "Pail",
    "PailError",
    "QueryIndexManagerRetryContext",
    "RetryAction",
    "RetryBudget",
    "RetryContext",
    "RetryLimitBreachedError",
    "RetryReason",
    "RetryRequest",
    "RetrySettings",
    "RetryState",
    "RetryStrategy",
    "RetryingCluster",
    "RetryingQueryIndexManager",
    "STOP",
    "SubdocFlag",
    "SubdocKind",
    "SubdocOp",
    "configure_logging",
    "is_connect_error",
    "load_settings",
    "merge_options",
    "new_cluster_retry_context",
    "new_collection_retry_context",
    "new_query_index_manager_retry_context",
]
