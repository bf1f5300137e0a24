"""Provider gateway layer.

Async infrastructure for calling chat-completion providers with:
  - Chat completion client (timeouts, typed transport errors)
  - Retry executor (exponential backoff with jitter)
  - Concurrency-bounded batch runners (window or semaphore pool)
"""
