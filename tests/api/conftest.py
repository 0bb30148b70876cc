"""
Per-file sys.modules isolation for API tests.

The API test files add problem-intake/ to sys.path and import `app.*` inside
their fixtures. Other test directories import the same `app` package at
collection time with their own patches, so cached `app.*` entries are
cleared before each test file is collected.
"""

import sys


def pytest_collect_file(parent, file_path):
    """Clear cached app.* modules before every test file is collected."""
    if file_path.suffix == ".py" and file_path.name.startswith("test_"):
        for key in list(sys.modules.keys()):
            if key == "app" or key.startswith("app."):
                del sys.modules[key]
    return None
