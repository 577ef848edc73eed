import os

# Never pick up a developer's .env or real Firebase project in tests
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("FIREBASE_PROJECT_ID", "squadlink-test")

from .fixtures.factories import *  # noqa: E402
