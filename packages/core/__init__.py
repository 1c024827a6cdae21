"""Domain core: cache keys, tokens, timestamps, batching, errors, ports and use cases."""
