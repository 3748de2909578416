"""Global pytest configuration."""

import os

# Keep tests offline and on local storage before any settings are read
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["USE_S3_LOCAL"] = "false"
os.environ.pop("OPENAI_API_KEY", None)
