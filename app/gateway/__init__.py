"""Upstream image gateway.

Relays image-to-image requests to the Gemini API with:
  - Resilient Invoker (bounded retries, exponential backoff with jitter)
  - Gemini protocol helpers (payload construction, inline image extraction)
  - Response Normalizer (stable success/error JSON)
"""
