"""Shared fixtures for retrieval tests."""

import pytest

SAMPLE_CORPUS = [
    "The authentication module handles user login and session management.",
    "Database queries are optimized using connection pooling and caching.",
    "The API gateway routes requests to appropriate microservices.",
    "User authentication requires valid credentials and MFA verification.",
    "The caching layer reduces database load significantly.",
    "Session tokens are validated using JWT verification.",
    "The routing system supports RESTful API patterns.",
    "Password hashing uses bcrypt with configurable rounds.",
    "The connection pool manages database connections efficiently.",
    "API rate limiting prevents abuse and ensures fair usage.",
]

CODE_CORPUS = [
    "def validate_token(token): return jwt.decode(token, SECRET_KEY)",
    "class SessionStore: def get(self, session_id): return self.cache[session_id]",
    "def login(user, password): token = issue_token(user); return token",
    "def hash_password(password): return bcrypt.hashpw(password, bcrypt.gensalt())",
    "class RateLimiter: def allow(self, client_id): return self.bucket.take(client_id)",
]


@pytest.fixture
def sample_corpus():
    return list(SAMPLE_CORPUS)


@pytest.fixture
def code_corpus():
    return list(CODE_CORPUS)
