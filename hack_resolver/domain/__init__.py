"""Domain layer (pure logic).

- Keep hack rules, outcome derivation and record layout here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no Redis.
- Prefer deterministic functions (randomness is passed in as bytes).
"""
