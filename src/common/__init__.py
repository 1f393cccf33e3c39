from common import llm
from common.errors import describe_error
from common.retry import RetryPolicy, call_with_retry

__all__ = ["llm", "describe_error", "RetryPolicy", "call_with_retry"]
