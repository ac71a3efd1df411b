# Observability module
from shine_wardrobe.observability.logger import log_request, is_logging_enabled
from shine_wardrobe.observability.metrics import (
    record_recommendation,
    get_metrics,
    reset_metrics,
)
