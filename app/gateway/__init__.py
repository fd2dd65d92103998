"""AI gateway access.

A single OpenRouter-compatible chat-completion endpoint serves every tracked
backend; ``AiQueryClient`` owns retries, backoff and timeouts.
"""
